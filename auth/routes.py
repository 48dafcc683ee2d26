# src/auth/routes.py
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Callable, Optional
from auth.services import AuthService
from auth.schemas import (
    AdminUserCreate,
    Token,
    UserCreate,
    UserEnvelope,
    UserListEnvelope,
    UserLogin,
    UserResponse,
    UserUpdate,
)
from auth.models import User
from auth.permissions import AuthorizationEngine, get_authorization_engine
from config import settings
from database import get_db
from errors import UnauthenticatedError

router = APIRouter(prefix="/auth", tags=["auth"])
bearer_scheme = HTTPBearer(auto_error=False)

TOKEN_COOKIE = "token"


def _read_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(TOKEN_COOKIE)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Retrieve the current authenticated user from a bearer token or the token cookie."""
    token = _read_token(request, credentials)
    if not token:
        raise UnauthenticatedError("Not authorized to access this route")
    return AuthService.verify_token(token, db)


def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but an absent or bad token means anonymous."""
    token = _read_token(request, credentials)
    if not token:
        return None
    try:
        return AuthService.verify_token(token, db)
    except UnauthenticatedError:
        return None


def require_permission(permission: str) -> Callable[..., User]:
    """Dependency factory: the current user must hold ``permission``."""
    def dependency(
        current_user: User = Depends(get_current_user),
        engine: AuthorizationEngine = Depends(get_authorization_engine),
    ) -> User:
        engine.check(current_user, permission)
        return current_user
    return dependency


def require_roles(*roles: str) -> Callable[..., User]:
    """Dependency factory: the current user's role must be one of ``roles``."""
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        AuthorizationEngine.ensure_role(current_user, *roles)
        return current_user
    return dependency


def _token_response(user: User, response: Response) -> dict:
    token = AuthService.create_access_token(user)
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
    )
    return {"success": True, "token": token, "token_type": "bearer", "user": UserResponse.model_validate(user)}


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, response: Response, db: Session = Depends(get_db)):
    """Register a new user and log them in."""
    new_user = AuthService.create_user(user, db)
    return _token_response(new_user, response)


@router.post("/login", response_model=Token)
def login(user: UserLogin, response: Response, db: Session = Depends(get_db)):
    """Login and return a JWT token."""
    authenticated_user = AuthService.authenticate_user(user.email, user.password, db)
    return _token_response(authenticated_user, response)


@router.get("/logout")
def logout(response: Response):
    """Clear the token cookie."""
    response.delete_cookie(TOKEN_COOKIE)
    return {"success": True, "data": {}}


@router.get("/me", response_model=UserEnvelope)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user details."""
    return {"success": True, "data": current_user}


@router.get("/users", response_model=UserListEnvelope)
def get_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("admin", "superadmin")),
):
    """List all users."""
    users = AuthService.list_users(db)
    return {"success": True, "count": len(users), "data": users}


@router.post("/users", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: AdminUserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("admin", "superadmin")),
):
    """Create a user with an explicit role."""
    return {"success": True, "data": AuthService.admin_create_user(user_data, current_user, db)}


@router.put("/users/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("admin", "superadmin")),
):
    """Update a user's profile fields, role or permissions."""
    return {"success": True, "data": AuthService.update_user(user_id, user_data, current_user, db)}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("superadmin")),
):
    """Delete a user. Superadmin only, and never yourself."""
    AuthService.delete_user(user_id, current_user, db)
    return {"success": True, "data": {}}
