# src/auth/schemas.py
from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import List, Literal, Optional

Role = Literal["user", "admin", "superadmin"]


def _clean_username(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if len(value) < 3:
        raise ValueError("Username must be at least 3 characters")
    return value


class UserCreate(BaseModel):
    """Schema for user registration. Any client-supplied role is ignored."""
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        return _clean_username(value)


class AdminUserCreate(UserCreate):
    """Schema for an admin creating a user with an explicit role."""
    role: Role = "user"
    permissions: Optional[List[str]] = None


class UserUpdate(BaseModel):
    """Schema for an admin updating a user. Only supplied keys are applied."""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    permissions: Optional[List[str]] = None

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: Optional[str]) -> Optional[str]:
        return _clean_username(value)


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Schema for user response."""
    id: int
    username: str
    email: str
    role: str
    permissions: Optional[List[str]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuthorResponse(BaseModel):
    """Author reference resolved to a display name."""
    id: int
    username: str

    class Config:
        from_attributes = True


class Token(BaseModel):
    """Schema for token response."""
    success: bool = True
    token: str
    token_type: str = "bearer"
    user: UserResponse


class UserEnvelope(BaseModel):
    success: bool = True
    data: UserResponse


class UserListEnvelope(BaseModel):
    success: bool = True
    count: int
    data: List[UserResponse]


class AdminActionLogResponse(BaseModel):
    """Schema for admin action log response."""
    id: int
    admin_id: Optional[int]
    action: str
    timestamp: datetime

    class Config:
        from_attributes = True


class AdminActionLogListEnvelope(BaseModel):
    success: bool = True
    count: int
    data: List[AdminActionLogResponse]
