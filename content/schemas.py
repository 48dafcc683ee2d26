# src/content/schemas.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Literal, Optional

from auth.schemas import AuthorResponse

PostStatus = Literal["draft", "published"]


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Strip tags and drop blanks and duplicates, keeping first occurrence order."""
    if tags is None:
        return None
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class PostCreate(BaseModel):
    """Schema for creating a post."""
    title: str = Field(..., max_length=100)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(None, max_length=200)
    category: str = "Uncategorized"
    tags: List[str] = []
    featured_image: str = "no-photo.jpg"
    status: PostStatus = "draft"

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please add a title")
        return value

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: List[str]) -> List[str]:
        return _clean_tags(value)


class PostUpdate(BaseModel):
    """Schema for a partial post update; unset keys are left alone."""
    title: Optional[str] = Field(None, max_length=100)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = Field(None, max_length=200)
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    featured_image: Optional[str] = None
    status: Optional[PostStatus] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Please add a title")
        return value

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(value)


class CommentCreate(BaseModel):
    """Schema for creating a comment."""
    content: str = Field(..., max_length=500)

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please add some text")
        return value


class CommentResponse(BaseModel):
    id: int
    post_id: int
    author: AuthorResponse
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class PostResponse(BaseModel):
    """Schema for post response."""
    id: int
    title: str
    slug: str
    content: str
    excerpt: Optional[str]
    author: AuthorResponse
    category: str
    tags: List[str]
    featured_image: str
    status: str
    likes: List[int]
    comment_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_orm(cls, obj):
        return cls(
            id=obj.id,
            title=obj.title,
            slug=obj.slug,
            content=obj.content,
            excerpt=obj.excerpt,
            author=AuthorResponse.model_validate(obj.author),
            category=obj.category,
            tags=obj.tags or [],
            featured_image=obj.featured_image,
            status=obj.status,
            likes=[like.user_id for like in obj.likes_rel],
            comment_count=obj.comment_count,
            created_at=obj.created_at,
            updated_at=obj.updated_at,
        )


class PostDetailResponse(PostResponse):
    comments: List[CommentResponse]

    @classmethod
    def from_orm(cls, obj):
        base = PostResponse.from_orm(obj)
        return cls(
            **base.model_dump(),
            comments=[CommentResponse.model_validate(comment) for comment in obj.comments],
        )


class PostEnvelope(BaseModel):
    success: bool = True
    data: PostResponse


class PostDetailEnvelope(BaseModel):
    success: bool = True
    data: PostDetailResponse


class PostListEnvelope(BaseModel):
    success: bool = True
    count: int
    data: List[PostResponse]


class CommentEnvelope(BaseModel):
    success: bool = True
    data: CommentResponse


class LikesEnvelope(BaseModel):
    success: bool = True
    data: List[int]


class EmptyEnvelope(BaseModel):
    success: bool = True
    data: dict = {}
