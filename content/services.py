# src/content/services.py
import logging
import re
import secrets
import string
from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload
from typing import Optional, List
from auth.models import User
from auth.permissions import AuthorizationEngine, default_engine
from content.models import Post, Comment, PostLike
from content.schemas import PostCreate, PostUpdate, CommentCreate
from config import settings
from database import id_in_range
from errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

SLUG_ALPHABET = string.ascii_lowercase + string.digits


def slugify(title: str) -> str:
    """Lowercase, dash-join on spaces and drop anything but word characters and dashes."""
    return re.sub(r"[^\w-]+", "", "-".join(title.lower().split(" ")), flags=re.ASCII)


def make_slug(title: str) -> str:
    suffix = "".join(secrets.choice(SLUG_ALPHABET) for _ in range(settings.SLUG_SUFFIX_LENGTH))
    return f"{slugify(title)}-{suffix}"


class PostService:
    @staticmethod
    def _get(post_id: int, db: Session) -> Post:
        post = db.get(Post, post_id) if id_in_range(post_id) else None
        if not post:
            raise NotFoundError("Post not found")
        return post

    @staticmethod
    def _unique_slug(title: str, db: Session) -> str:
        """Pick a slug not currently in use. The unique index is the real guard;
        this only makes a collision at commit unlikely."""
        for _ in range(settings.SLUG_MAX_ATTEMPTS):
            slug = make_slug(title)
            if not db.query(Post.id).filter(Post.slug == slug).first():
                return slug
        raise ConflictError("Could not generate a unique slug, please retry", code="slug_conflict")

    @staticmethod
    def _commit(db: Session, slug: str, post_id: Optional[int] = None) -> None:
        """Commit a post write. Only a collision on ``slug`` becomes a conflict."""
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            taken = db.query(Post.id).filter(Post.slug == slug)
            if post_id is not None:
                taken = taken.filter(Post.id != post_id)
            if taken.first():
                raise ConflictError("Slug already in use, please retry", code="slug_conflict")
            raise

    @staticmethod
    def get_posts(user: Optional[User], db: Session) -> List[Post]:
        """List posts. Only admins and superadmins see drafts."""
        query = db.query(Post).options(joinedload(Post.author), selectinload(Post.likes_rel))
        if not AuthorizationEngine.is_moderator(user):
            query = query.filter(Post.status == "published")
        return query.order_by(Post.created_at.desc(), Post.id.desc()).all()

    @staticmethod
    def get_post(post_id: int, db: Session) -> Post:
        """Retrieve a post with its author, likes and comments (oldest first)."""
        if not id_in_range(post_id):
            raise NotFoundError("Post not found")
        post = (
            db.query(Post)
            .options(
                joinedload(Post.author),
                selectinload(Post.likes_rel),
                selectinload(Post.comments).joinedload(Comment.author),
            )
            .filter(Post.id == post_id)
            .first()
        )
        if not post:
            raise NotFoundError("Post not found")
        return post

    @staticmethod
    def create_post(
            post_data: PostCreate,
            user: User,
            db: Session,
            engine: AuthorizationEngine = default_engine,
    ) -> Post:
        """Create a post authored by ``user``."""
        engine.check(user, "create_post")
        db_post = Post(
            user_id=user.id,
            title=post_data.title,
            slug=PostService._unique_slug(post_data.title, db),
            content=post_data.content,
            excerpt=post_data.excerpt,
            category=post_data.category,
            tags=post_data.tags,
            featured_image=post_data.featured_image,
            status=post_data.status,
            comment_count=0,
        )
        db.add(db_post)
        PostService._commit(db, db_post.slug)
        logger.info(f"User {user.id} created post {db_post.id} ({db_post.slug})")
        return PostService.get_post(db_post.id, db)

    @staticmethod
    def update_post(post_id: int, post_data: PostUpdate, user: User, db: Session) -> Post:
        """Apply the supplied fields. A changed title gets a fresh slug."""
        db_post = PostService._get(post_id, db)
        AuthorizationEngine.ensure_owner(user, db_post.user_id)

        fields = post_data.model_dump(exclude_unset=True)
        for key, value in fields.items():
            if value is None and key != "excerpt":
                continue
            if key == "title" and value != db_post.title:
                db_post.slug = PostService._unique_slug(value, db)
            setattr(db_post, key, value)
        PostService._commit(db, db_post.slug, post_id)
        return PostService.get_post(post_id, db)

    @staticmethod
    def delete_post(post_id: int, user: User, db: Session) -> None:
        """Delete a post with its comments and likes in one transaction.

        Comments and likes are removed before the post. If that sequence is
        ever interrupted, the scheduled orphan purge removes the leftovers.
        """
        db_post = PostService._get(post_id, db)
        AuthorizationEngine.ensure_owner(user, db_post.user_id)

        removed = db.query(Comment).filter(Comment.post_id == post_id).delete(synchronize_session=False)
        db.query(PostLike).filter(PostLike.post_id == post_id).delete(synchronize_session=False)
        db.delete(db_post)
        db.commit()
        logger.info(f"User {user.id} deleted post {post_id} and {removed} comments")

    @staticmethod
    def toggle_like(post_id: int, user: User, db: Session) -> List[int]:
        """Like the post, or unlike it if already liked. Returns liking user ids."""
        PostService._get(post_id, db)
        user_id = user.id
        removed = (
            db.query(PostLike)
            .filter(PostLike.post_id == post_id, PostLike.user_id == user_id)
            .delete(synchronize_session=False)
        )
        if not removed:
            db.add(PostLike(post_id=post_id, user_id=user_id))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            # Only a concurrent like of the same post is benign; it is liked either way.
            PostService._get(post_id, db)
            liked = db.query(PostLike.id).filter(PostLike.post_id == post_id, PostLike.user_id == user_id)
            if not liked.first():
                raise
        return PostService.get_likes(post_id, db)

    @staticmethod
    def get_likes(post_id: int, db: Session) -> List[int]:
        rows = db.execute(
            select(PostLike.user_id).where(PostLike.post_id == post_id).order_by(PostLike.id)
        )
        return [user_id for (user_id,) in rows]

    @staticmethod
    def purge_user_content(user_id: int, db: Session) -> None:
        """Remove everything a user authored or liked, keeping comment counts exact.

        Does not commit; the caller owns the transaction.
        """
        own_posts = select(Post.id).where(Post.user_id == user_id)
        db.query(Comment).filter(Comment.post_id.in_(own_posts)).delete(synchronize_session=False)
        db.query(PostLike).filter(PostLike.post_id.in_(own_posts)).delete(synchronize_session=False)
        db.query(Post).filter(Post.user_id == user_id).delete(synchronize_session=False)

        per_post = (
            db.query(Comment.post_id, func.count(Comment.id))
            .filter(Comment.user_id == user_id)
            .group_by(Comment.post_id)
            .all()
        )
        for post_id, count in per_post:
            db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(comment_count=case((Post.comment_count > count, Post.comment_count - count), else_=0)),
                execution_options={"synchronize_session": False},
            )
        db.query(Comment).filter(Comment.user_id == user_id).delete(synchronize_session=False)
        db.query(PostLike).filter(PostLike.user_id == user_id).delete(synchronize_session=False)

    @staticmethod
    def reconcile_comment_counts(db: Session) -> int:
        """Reset any comment_count that drifted from the real number of comments."""
        actual = (
            select(func.count(Comment.id))
            .where(Comment.post_id == Post.id)
            .correlate(Post)
            .scalar_subquery()
        )
        result = db.execute(
            update(Post).where(Post.comment_count != actual).values(comment_count=actual),
            execution_options={"synchronize_session": False},
        )
        db.commit()
        return result.rowcount or 0


class CommentService:
    @staticmethod
    def create_comment(
            post_id: int,
            comment_data: CommentCreate,
            user: User,
            db: Session,
            engine: AuthorizationEngine = default_engine,
    ) -> Comment:
        """Create a comment and bump the post's comment_count in the same transaction."""
        PostService._get(post_id, db)
        engine.check_any(user, "create_comment", "manage_comments")

        db_comment = Comment(post_id=post_id, user_id=user.id, content=comment_data.content)
        db.add(db_comment)
        db.execute(
            update(Post).where(Post.id == post_id).values(comment_count=Post.comment_count + 1),
            execution_options={"synchronize_session": False},
        )
        db.commit()
        return CommentService.get_comment(db_comment.id, db)

    @staticmethod
    def get_comment(comment_id: int, db: Session) -> Comment:
        if not id_in_range(comment_id):
            raise NotFoundError("Comment not found")
        comment = (
            db.query(Comment)
            .options(joinedload(Comment.author))
            .filter(Comment.id == comment_id)
            .first()
        )
        if not comment:
            raise NotFoundError("Comment not found")
        return comment

    @staticmethod
    def get_comments(post_id: int, db: Session) -> List[Comment]:
        """Retrieve comments for a post, oldest first."""
        PostService._get(post_id, db)
        return (
            db.query(Comment)
            .options(joinedload(Comment.author))
            .filter(Comment.post_id == post_id)
            .order_by(Comment.id)
            .all()
        )

    @staticmethod
    def delete_comment(comment_id: int, user: User, db: Session) -> None:
        """Delete a comment and decrement the post's comment_count in the same transaction."""
        db_comment = db.get(Comment, comment_id) if id_in_range(comment_id) else None
        if not db_comment:
            raise NotFoundError("Comment not found")
        AuthorizationEngine.ensure_owner(user, db_comment.user_id)

        post_id = db_comment.post_id
        db.delete(db_comment)
        db.execute(
            update(Post)
            .where(Post.id == post_id, Post.comment_count > 0)
            .values(comment_count=Post.comment_count - 1),
            execution_options={"synchronize_session": False},
        )
        db.commit()

    @staticmethod
    def purge_orphan_comments(db: Session) -> int:
        """Delete comments whose post no longer exists."""
        removed = (
            db.query(Comment)
            .filter(~Comment.post_id.in_(select(Post.id)))
            .delete(synchronize_session=False)
        )
        db.commit()
        return removed
