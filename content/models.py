# src/content/models.py
from sqlalchemy import Column, Integer, String, ForeignKey, Text, DateTime, JSON, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from typing import List, Optional

class Post(Base):
    """Represents a blog post."""
    __tablename__ = "posts"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title: str = Column(String(100), nullable=False)
    slug: str = Column(String, unique=True, index=True, nullable=False)
    content: str = Column(Text, nullable=False)
    excerpt: Optional[str] = Column(String(200), nullable=True)
    category: str = Column(String, nullable=False, default="Uncategorized")
    tags: List[str] = Column(JSON, nullable=False, default=list)
    featured_image: str = Column(String, nullable=False, default="no-photo.jpg")
    status: str = Column(String, nullable=False, default="draft")  # draft, published
    comment_count: int = Column(Integer, nullable=False, default=0)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("User", back_populates="posts")
    comments = relationship("Comment", back_populates="post", order_by="Comment.id", passive_deletes="all")
    likes_rel = relationship("PostLike", back_populates="post", order_by="PostLike.id", passive_deletes="all")

    __table_args__ = (CheckConstraint("comment_count >= 0", name="ck_posts_comment_count_non_negative"),)

class Comment(Base):
    """Represents a user comment on a post."""
    __tablename__ = "comments"

    id: int = Column(Integer, primary_key=True, index=True)
    post_id: int = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)
    content: str = Column(String(500), nullable=False)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    post = relationship("Post", back_populates="comments")
    author = relationship("User", back_populates="comments")


class PostLike(Base):
    __tablename__ = "post_likes"

    id: int = Column(Integer, primary_key=True, index=True)
    post_id: int = Column(Integer, ForeignKey("posts.id"), nullable=False)
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    post = relationship("Post", back_populates="likes_rel")
    user = relationship("User")

    __table_args__ = (UniqueConstraint('post_id', 'user_id', name='unique_post_user_like'),)
