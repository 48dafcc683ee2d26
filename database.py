# src/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import settings

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session for the duration of a request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create all tables that do not exist yet."""
    # Models register themselves on Base.metadata when imported.
    import auth.models  # noqa: F401
    import content.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# Primary keys are signed 64-bit integers on every supported backend.
MAX_ID = 2**63 - 1


def id_in_range(ident: int) -> bool:
    """Whether ``ident`` can be a stored primary key. Drivers reject larger values outright."""
    return 0 < ident <= MAX_ID
