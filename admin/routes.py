# src/admin/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session
from auth.models import User, AdminActionLog
from auth.schemas import AdminActionLogListEnvelope, AdminActionLogResponse
from auth.routes import require_permission
from content.models import Post, Comment, PostLike
from database import get_db

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats")
def get_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("view_stats")),
):
    """Dashboard totals."""
    posts_by_status = dict(db.query(Post.status, func.count(Post.id)).group_by(Post.status).all())
    return {
        "success": True,
        "data": {
            "total_posts": sum(posts_by_status.values()),
            "published_posts": posts_by_status.get("published", 0),
            "draft_posts": posts_by_status.get("draft", 0),
            "total_users": db.query(func.count(User.id)).scalar(),
            "total_comments": db.query(func.count(Comment.id)).scalar(),
            "total_likes": db.query(func.count(PostLike.id)).scalar(),
        },
    }


@router.get("/logs", response_model=AdminActionLogListEnvelope)
def get_admin_logs(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("manage_users")),
):
    """Retrieve admin action logs, newest first."""
    logs = db.query(AdminActionLog).order_by(AdminActionLog.id.desc()).all()
    data = [AdminActionLogResponse.model_validate(log) for log in logs]
    return {"success": True, "count": len(data), "data": data}
