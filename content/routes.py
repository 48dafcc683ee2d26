# src/content/routes.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional
from content.services import PostService, CommentService
from content.schemas import (
    CommentCreate,
    CommentEnvelope,
    CommentResponse,
    EmptyEnvelope,
    LikesEnvelope,
    PostCreate,
    PostDetailEnvelope,
    PostDetailResponse,
    PostEnvelope,
    PostListEnvelope,
    PostResponse,
    PostUpdate,
)
from auth.routes import get_current_user, get_optional_user, require_permission
from auth.permissions import AuthorizationEngine, get_authorization_engine
from database import get_db
from auth.models import User

router = APIRouter(tags=["content"])


@router.get("/posts", response_model=PostListEnvelope)
def get_posts(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """List posts. Drafts are only visible to admins and superadmins."""
    posts = [PostResponse.from_orm(post) for post in PostService.get_posts(current_user, db)]
    return {"success": True, "count": len(posts), "data": posts}


@router.post("/posts", response_model=PostEnvelope, status_code=status.HTTP_201_CREATED)
def create_post(
    post_data: PostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("create_post")),
    engine: AuthorizationEngine = Depends(get_authorization_engine),
):
    """Create a new post."""
    post = PostService.create_post(post_data, current_user, db, engine)
    return {"success": True, "data": PostResponse.from_orm(post)}


@router.get("/posts/{post_id}", response_model=PostDetailEnvelope)
def get_post(post_id: int, db: Session = Depends(get_db)):
    """Retrieve a post with its comments."""
    return {"success": True, "data": PostDetailResponse.from_orm(PostService.get_post(post_id, db))}


@router.put("/posts/{post_id}", response_model=PostEnvelope)
def update_post(
    post_id: int,
    post_data: PostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update a post. Author, admin or superadmin only."""
    post = PostService.update_post(post_id, post_data, current_user, db)
    return {"success": True, "data": PostResponse.from_orm(post)}


@router.delete("/posts/{post_id}", response_model=EmptyEnvelope)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a post and its comments."""
    PostService.delete_post(post_id, current_user, db)
    return {"success": True, "data": {}}


@router.put("/posts/{post_id}/like", response_model=LikesEnvelope)
def like_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Like or unlike a post."""
    return {"success": True, "data": PostService.toggle_like(post_id, current_user, db)}


@router.get("/posts/{post_id}/comments")
def get_comments(post_id: int, db: Session = Depends(get_db)):
    """Retrieve comments for a post."""
    comments = [CommentResponse.model_validate(comment) for comment in CommentService.get_comments(post_id, db)]
    return {"success": True, "count": len(comments), "data": comments}


@router.post("/posts/{post_id}/comments", response_model=CommentEnvelope, status_code=status.HTTP_201_CREATED)
def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    engine: AuthorizationEngine = Depends(get_authorization_engine),
):
    """Create a comment on a post."""
    comment = CommentService.create_comment(post_id, comment_data, current_user, db, engine)
    return {"success": True, "data": CommentResponse.model_validate(comment)}


@router.delete("/comments/{comment_id}", response_model=EmptyEnvelope)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a comment. Author, admin or superadmin only."""
    CommentService.delete_comment(comment_id, current_user, db)
    return {"success": True, "data": {}}
