"""
User Model - Defines the user data structure.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class UserBase(BaseModel):
    """Base user model with common fields."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class UserCreate(UserBase):
    """User registration model with password."""
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    """Login credentials."""
    email: EmailStr
    password: str


class User(UserBase):
    """User model with all public fields."""
    user_id: str
    created_at: datetime
    updated_at: datetime
    is_active: bool = True

    class Config:
        from_attributes = True


class Token(BaseModel):
    """Login response: user plus JWT access token."""
    user: User
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Token payload data."""
    user_id: Optional[str] = None
    email: Optional[str] = None
