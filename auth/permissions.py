# src/auth/permissions.py
"""
Role based authorization.

Decisions are made in order, first match wins:

1. ``superadmin`` is always allowed.
2. A permission listed in the user's explicit ``permissions`` is allowed.
3. A permission in the default set for the user's role is allowed.
4. Anything else is denied with :class:`errors.PermissionDeniedError`.

Ownership checks on posts and comments are separate: the author of a
resource, or any admin/superadmin, may modify it. Failing that check raises
:class:`errors.OwnershipError`, never a permission error.
"""
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from auth.models import User
from config import DEFAULT_ROLE_PERMISSIONS
from errors import OwnershipError, PermissionDeniedError, RoleNotAllowedError

SUPERADMIN = "superadmin"
MODERATOR_ROLES = frozenset({"admin", SUPERADMIN})


class AuthorizationEngine:
    """Permission decisions against an immutable role table."""

    def __init__(self, role_permissions: Mapping[str, Iterable[str]] = DEFAULT_ROLE_PERMISSIONS):
        self.role_permissions = MappingProxyType(
            {role: frozenset(perms) for role, perms in role_permissions.items()}
        )

    def has_permission(self, user: User, permission: str) -> bool:
        if user.role == SUPERADMIN:
            return True
        if user.permissions and permission in user.permissions:
            return True
        return permission in self.role_permissions.get(user.role, frozenset())

    def check(self, user: User, permission: str) -> None:
        """Raise PermissionDeniedError unless ``user`` holds ``permission``."""
        if not self.has_permission(user, permission):
            raise PermissionDeniedError(permission)

    def check_any(self, user: User, *permissions: str) -> None:
        """Pass if any one of ``permissions`` is held; report the first otherwise."""
        if not any(self.has_permission(user, permission) for permission in permissions):
            raise PermissionDeniedError(permissions[0])

    @staticmethod
    def is_moderator(user: Optional[User]) -> bool:
        return user is not None and user.role in MODERATOR_ROLES

    @staticmethod
    def ensure_owner(user: User, owner_id: int) -> None:
        """Ownership overlay for update/delete on posts and comments."""
        if user.id != owner_id and user.role not in MODERATOR_ROLES:
            raise OwnershipError()

    @staticmethod
    def ensure_role(user: User, *roles: str) -> None:
        if user.role not in roles:
            raise RoleNotAllowedError(f"User role {user.role} is not authorized to access this route")


default_engine = AuthorizationEngine()


def get_authorization_engine() -> AuthorizationEngine:
    """FastAPI dependency; override it to run with a different role table."""
    return default_engine
