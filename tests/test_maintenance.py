"""
Maintenance job tests: orphan comment purge and comment_count reconciliation.
"""

import scheduler.tasks as tasks
from content.models import Comment, Post
from content.schemas import CommentCreate, PostCreate
from content.services import CommentService, PostService


def make_post(db, author, title="Post"):
    return PostService.create_post(PostCreate(title=title, content="x"), author, db)


class TestOrphanPurge:
    """Comments whose post is gone"""

    def test_purges_only_orphans(self, db_session, alice):
        post = make_post(db_session, alice)
        CommentService.create_comment(post.id, CommentCreate(content="kept"), alice, db_session)
        # SQLite does not enforce the foreign key, so an orphan can be planted directly.
        db_session.add(Comment(post_id=9999, user_id=alice.id, content="orphan"))
        db_session.commit()

        assert CommentService.purge_orphan_comments(db_session) == 1
        assert db_session.query(Comment).count() == 1
        assert db_session.query(Comment).one().content == "kept"

    def test_nothing_to_purge(self, db_session, alice):
        make_post(db_session, alice)
        assert CommentService.purge_orphan_comments(db_session) == 0


class TestReconcile:
    """Repairing drifted counters"""

    def test_resets_drifted_counts(self, db_session, alice, bob):
        drifted = make_post(db_session, alice, title="Drifted")
        healthy = make_post(db_session, alice, title="Healthy")
        drifted_id, healthy_id = drifted.id, healthy.id
        CommentService.create_comment(drifted_id, CommentCreate(content="one"), bob, db_session)
        CommentService.create_comment(healthy_id, CommentCreate(content="two"), bob, db_session)
        db_session.query(Post).filter(Post.id == drifted_id).update({"comment_count": 5})
        db_session.commit()

        assert PostService.reconcile_comment_counts(db_session) == 1

        db_session.expire_all()
        assert db_session.get(Post, drifted_id).comment_count == 1
        assert db_session.get(Post, healthy_id).comment_count == 1

    def test_consistent_store_is_untouched(self, db_session, alice):
        make_post(db_session, alice)
        assert PostService.reconcile_comment_counts(db_session) == 0


class TestScheduledJobs:
    """Job wrappers open their own sessions"""

    def test_run_maintenance(self, db_session, session_factory, alice, monkeypatch):
        monkeypatch.setattr(tasks, "SessionLocal", session_factory)
        post = make_post(db_session, alice)
        post_id = post.id
        CommentService.create_comment(post_id, CommentCreate(content="real"), alice, db_session)
        db_session.add(Comment(post_id=4242, user_id=alice.id, content="orphan"))
        db_session.query(Post).filter(Post.id == post_id).update({"comment_count": 3})
        db_session.commit()

        tasks.run_maintenance()

        db_session.expire_all()
        assert db_session.query(Comment).filter(Comment.post_id == 4242).count() == 0
        assert db_session.get(Post, post_id).comment_count == 1

    def test_job_errors_are_logged_not_raised(self, monkeypatch, caplog):
        monkeypatch.setattr(tasks, "SessionLocal", _Broken)
        tasks.purge_orphan_comments()
        assert "Error in purge_orphan_comments" in caplog.text


class _Broken:
    """Session stand-in whose queries fail."""

    def query(self, *args, **kwargs):
        raise RuntimeError("database unavailable")

    def rollback(self):
        pass

    def close(self):
        pass
