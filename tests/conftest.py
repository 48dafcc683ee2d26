"""
Test fixtures: a throwaway SQLite database per test, a TestClient wired to it,
and one account per role.
"""

import os

# Must be set before config/database are imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_SCHEDULER"] = "false"

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from auth.models import User
from auth.services import AuthService
from config import settings
from database import Base, get_db
from main import app

API = settings.API_PREFIX
PASSWORD = "secret123"


@pytest.fixture
def engine(tmp_path):
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory) -> Generator[TestClient, None, None]:
    """TestClient whose requests each get a fresh session on the test database."""
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db: Session, username: str, role: str = "user", permissions=None) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=AuthService.hash_password(PASSWORD),
        role=role,
        permissions=permissions,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {AuthService.create_access_token(user)}"}


@pytest.fixture
def alice(db_session) -> User:
    return make_user(db_session, "alice")


@pytest.fixture
def bob(db_session) -> User:
    return make_user(db_session, "bob")


@pytest.fixture
def admin(db_session) -> User:
    return make_user(db_session, "admin", role="admin")


@pytest.fixture
def superadmin(db_session) -> User:
    return make_user(db_session, "root", role="superadmin")
