"""
Authorization engine tests: role table, explicit overrides, ownership overlay.
"""

import pytest

from auth.models import User
from auth.permissions import AuthorizationEngine, default_engine
from config import DEFAULT_ROLE_PERMISSIONS
from errors import OwnershipError, PermissionDeniedError, RoleNotAllowedError

ALL_PERMISSIONS = sorted(set().union(*DEFAULT_ROLE_PERMISSIONS.values()) | {"unknown_action"})


def make_user(role: str, permissions=None, user_id: int = 1) -> User:
    return User(id=user_id, username=f"{role}{user_id}", email=f"{role}{user_id}@example.com",
                role=role, permissions=permissions)


class TestRoleTable:
    """Default role -> permission decisions"""

    @pytest.mark.parametrize("permission", ALL_PERMISSIONS)
    def test_superadmin_passes_every_check(self, permission):
        default_engine.check(make_user("superadmin"), permission)

    def test_superadmin_passes_with_empty_table(self):
        engine = AuthorizationEngine({})
        engine.check(make_user("superadmin"), "anything_at_all")

    @pytest.mark.parametrize("role", ["user", "admin"])
    @pytest.mark.parametrize("permission", ALL_PERMISSIONS)
    def test_role_table_decides(self, role, permission):
        user = make_user(role)
        if permission in DEFAULT_ROLE_PERMISSIONS[role]:
            default_engine.check(user, permission)
        else:
            with pytest.raises(PermissionDeniedError) as exc_info:
                default_engine.check(user, permission)
            assert exc_info.value.permission == permission
            assert exc_info.value.status_code == 403
            assert exc_info.value.code == "missing_permission"

    def test_unknown_role_has_no_permissions(self):
        with pytest.raises(PermissionDeniedError):
            default_engine.check(make_user("guest"), "create_post")

    def test_admin_cannot_create_posts_by_default(self):
        with pytest.raises(PermissionDeniedError):
            default_engine.check(make_user("admin"), "create_post")


class TestExplicitPermissions:
    """Per-user permission overrides"""

    def test_explicit_permission_grants_beyond_role(self):
        user = make_user("user", permissions=["view_stats"])
        default_engine.check(user, "view_stats")

    def test_explicit_permission_survives_revoked_role_entry(self):
        engine = AuthorizationEngine({"user": []})
        engine.check(make_user("user", permissions=["create_post"]), "create_post")
        with pytest.raises(PermissionDeniedError):
            engine.check(make_user("user"), "create_post")

    def test_empty_override_falls_back_to_role(self):
        default_engine.check(make_user("user", permissions=[]), "create_comment")

    def test_check_any(self):
        default_engine.check_any(make_user("admin"), "create_comment", "manage_comments")
        with pytest.raises(PermissionDeniedError) as exc_info:
            default_engine.check_any(make_user("user"), "manage_users", "view_stats")
        assert exc_info.value.permission == "manage_users"


class TestInjectedTable:
    """The role table is fixed per engine instance"""

    def test_table_is_read_only(self):
        engine = AuthorizationEngine({"user": ["create_post"]})
        with pytest.raises(TypeError):
            engine.role_permissions["user"] = frozenset({"manage_users"})

    def test_source_mapping_changes_do_not_leak(self):
        table = {"user": ["create_post"]}
        engine = AuthorizationEngine(table)
        table["user"].append("manage_users")
        with pytest.raises(PermissionDeniedError):
            engine.check(make_user("user"), "manage_users")

    def test_engines_are_independent(self):
        strict = AuthorizationEngine({"user": []})
        with pytest.raises(PermissionDeniedError):
            strict.check(make_user("user"), "create_post")
        default_engine.check(make_user("user"), "create_post")


class TestOwnership:
    """Ownership overlay for post and comment mutations"""

    @pytest.mark.parametrize("role,is_author,allowed", [
        ("user", True, True),
        ("user", False, False),
        ("admin", True, True),
        ("admin", False, True),
        ("superadmin", True, True),
        ("superadmin", False, True),
    ])
    def test_matrix(self, role, is_author, allowed):
        user = make_user(role, user_id=1)
        owner_id = 1 if is_author else 2
        if allowed:
            AuthorizationEngine.ensure_owner(user, owner_id)
        else:
            with pytest.raises(OwnershipError) as exc_info:
                AuthorizationEngine.ensure_owner(user, owner_id)
            assert exc_info.value.code == "not_owner"

    def test_ownership_failure_is_not_a_permission_failure(self):
        with pytest.raises(OwnershipError) as exc_info:
            AuthorizationEngine.ensure_owner(make_user("user", permissions=["manage_posts"]), 99)
        assert not isinstance(exc_info.value, PermissionDeniedError)

    def test_ensure_role(self):
        AuthorizationEngine.ensure_role(make_user("admin"), "admin", "superadmin")
        with pytest.raises(RoleNotAllowedError):
            AuthorizationEngine.ensure_role(make_user("admin"), "superadmin")
