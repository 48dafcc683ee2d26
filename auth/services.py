# src/auth/services.py
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from passlib.context import CryptContext
from datetime import datetime, timedelta
from typing import List, Optional
from auth.models import User, AdminActionLog
from auth.permissions import SUPERADMIN
from auth.schemas import UserCreate, AdminUserCreate, UserUpdate
from config import settings
from database import id_in_range
from content.services import PostService
from errors import (
    ConflictError,
    NotFoundError,
    RoleNotAllowedError,
    SelfDeleteError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

class AuthService:
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt."""
        return AuthService.pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return AuthService.pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token carrying the user id and role."""
        expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
        to_encode = {"sub": str(user.id), "role": user.role, "exp": expire}
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def verify_token(token: str, db: Session) -> User:
        """Resolve a token to a live user.

        Expired, malformed or badly signed tokens raise ``invalid_token``; a
        token for a user that has since been deleted raises ``stale_token``.
        """
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
            user_id = int(payload["sub"])
        except (JWTError, KeyError, TypeError, ValueError):
            raise UnauthenticatedError("Could not validate credentials", code="invalid_token")
        user = db.get(User, user_id) if id_in_range(user_id) else None
        if user is None:
            raise UnauthenticatedError("User no longer exists", code="stale_token")
        return user

    @staticmethod
    def get_user_by_email(email: str, db: Session) -> Optional[User]:
        """Retrieve a user by email."""
        return db.query(User).filter(User.email == email.lower()).first()

    @staticmethod
    def get_user(user_id: int, db: Session) -> User:
        user = db.get(User, user_id) if id_in_range(user_id) else None
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> User:
        user = AuthService.get_user_by_email(email, db)
        if not user or not AuthService.verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise UnauthenticatedError("Invalid credentials", code="invalid_credentials")
        return user

    @staticmethod
    def _ensure_unique(db: Session, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None):
        if email:
            query = db.query(User).filter(User.email == email)
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ConflictError("Email already registered")
        if username:
            query = db.query(User).filter(User.username == username)
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ConflictError("Username already taken")

    @staticmethod
    def _insert_user(db: Session, user: User) -> User:
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Username or email already exists")
        return user

    @staticmethod
    def create_user(user_data: UserCreate, db: Session) -> User:
        """Register a new account. Self-registration always gets the ``user`` role."""
        email = user_data.email.lower()
        AuthService._ensure_unique(db, user_data.username, email)
        new_user = AuthService._insert_user(db, User(
            username=user_data.username,
            email=email,
            password_hash=AuthService.hash_password(user_data.password),
            role="user",
        ))
        db.commit()
        db.refresh(new_user)
        logger.info(f"Registered user {new_user.id} ({new_user.username})")
        return new_user

    @staticmethod
    def admin_create_user(user_data: AdminUserCreate, admin: User, db: Session) -> User:
        """Create an account on behalf of an admin, with an explicit role."""
        if user_data.role == SUPERADMIN and admin.role != SUPERADMIN:
            raise RoleNotAllowedError("Only a superadmin can create superadmin accounts")
        email = user_data.email.lower()
        AuthService._ensure_unique(db, user_data.username, email)
        new_user = AuthService._insert_user(db, User(
            username=user_data.username,
            email=email,
            password_hash=AuthService.hash_password(user_data.password),
            role=user_data.role,
            permissions=user_data.permissions,
        ))
        db.add(AdminActionLog(admin_id=admin.id, action=f"Created user {new_user.id} with role {new_user.role}"))
        db.commit()
        db.refresh(new_user)
        logger.info(f"Admin {admin.id} created user {new_user.id} with role {new_user.role}")
        return new_user

    @staticmethod
    def list_users(db: Session) -> List[User]:
        return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    @staticmethod
    def update_user(user_id: int, user_data: UserUpdate, admin: User, db: Session) -> User:
        """Apply supplied fields to a user. Superadmin accounts and the superadmin
        role are reserved to superadmins."""
        user = AuthService.get_user(user_id, db)
        fields = user_data.model_dump(exclude_unset=True)
        if admin.role != SUPERADMIN and (user.role == SUPERADMIN or fields.get("role") == SUPERADMIN):
            raise RoleNotAllowedError("Only a superadmin can manage superadmin accounts")
        if "email" in fields and fields["email"] is not None:
            fields["email"] = fields["email"].lower()
        AuthService._ensure_unique(db, fields.get("username"), fields.get("email"), exclude_id=user.id)

        for key, value in fields.items():
            if value is None and key != "permissions":
                continue
            setattr(user, key, value)
        db.add(AdminActionLog(admin_id=admin.id, action=f"Updated user {user.id}: {', '.join(sorted(fields)) or 'no fields'}"))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Username or email already exists")
        db.refresh(user)
        logger.info(f"Admin {admin.id} updated user {user.id}")
        return user

    @staticmethod
    def delete_user(user_id: int, admin: User, db: Session) -> None:
        """Delete a user together with their posts, comments and likes."""
        if user_id == admin.id:
            raise SelfDeleteError()
        user = AuthService.get_user(user_id, db)
        PostService.purge_user_content(user.id, db)
        db.delete(user)
        db.add(AdminActionLog(admin_id=admin.id, action=f"Deleted user {user_id} ({user.username})"))
        db.commit()
        logger.info(f"Admin {admin.id} deleted user {user_id}")
