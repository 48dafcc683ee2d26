# src/auth/models.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from typing import List, Optional

class User(Base):
    """Represents a user in the system."""
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    username: str = Column(String(50), unique=True, index=True, nullable=False)
    email: str = Column(String, unique=True, index=True, nullable=False)
    password_hash: str = Column(String, nullable=False)
    role: str = Column(String, nullable=False, default="user")
    permissions: Optional[List[str]] = Column(JSON, nullable=True)  # explicit overrides of the role table
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    posts = relationship("Post", back_populates="author", passive_deletes="all")
    comments = relationship("Comment", back_populates="author", passive_deletes="all")
    admin_actions = relationship("AdminActionLog", back_populates="admin")

class AdminActionLog(Base):
    """Represents a log of admin actions."""
    __tablename__ = "admin_action_logs"

    id: int = Column(Integer, primary_key=True, index=True)
    admin_id: Optional[int] = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action: str = Column(String, nullable=False)
    timestamp: datetime = Column(DateTime, nullable=False, default=datetime.utcnow)

    admin = relationship("User", back_populates="admin_actions")
