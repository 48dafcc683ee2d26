"""
Admin console API tests.
"""

from content.schemas import CommentCreate, PostCreate
from content.services import CommentService, PostService

from conftest import API, auth_headers


class TestStats:
    """GET /admin/stats"""

    def test_totals(self, client, db_session, admin, alice, bob):
        live = PostService.create_post(PostCreate(title="Live", content="x", status="published"), alice, db_session)
        PostService.create_post(PostCreate(title="Draft", content="x"), alice, db_session)
        CommentService.create_comment(live.id, CommentCreate(content="c"), bob, db_session)
        PostService.toggle_like(live.id, bob, db_session)

        response = client.get(f"{API}/admin/stats", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["data"] == {
            "total_posts": 2,
            "published_posts": 1,
            "draft_posts": 1,
            "total_users": 3,
            "total_comments": 1,
            "total_likes": 1,
        }

    def test_requires_view_stats(self, client, alice):
        response = client.get(f"{API}/admin/stats", headers=auth_headers(alice))
        assert response.status_code == 403
        assert response.json()["message"] == "User does not have permission: view_stats"

    def test_explicit_view_stats(self, client, db_session, alice):
        alice.permissions = ["view_stats"]
        db_session.commit()
        assert client.get(f"{API}/admin/stats", headers=auth_headers(alice)).status_code == 200


class TestAdminLogs:
    """GET /admin/logs"""

    def test_user_changes_are_logged(self, client, admin, superadmin, alice, bob):
        client.put(f"{API}/auth/users/{alice.id}", headers=auth_headers(admin), json={"role": "admin"})
        client.delete(f"{API}/auth/users/{bob.id}", headers=auth_headers(superadmin))

        response = client.get(f"{API}/admin/logs", headers=auth_headers(admin))
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == len(body["data"]) == 2
        actions = [entry["action"] for entry in body["data"]]
        assert actions[0] == f"Deleted user {bob.id} (bob)"
        assert actions[1].startswith(f"Updated user {alice.id}")

    def test_requires_manage_users(self, client, alice):
        assert client.get(f"{API}/admin/logs", headers=auth_headers(alice)).status_code == 403
