# auth/schemas.py
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from responses import APIModel

class UserCreate(BaseModel):
    """Schema for user registration."""
    username: str = Field(min_length=3, max_length=64)
    email: EmailStr
    password: str = Field(min_length=8)

class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str

class UserResponse(APIModel):
    """Schema for user response."""
    id: str
    username: str
    email: str
    role: str
    is_blocked: bool
    last_login: Optional[datetime] = None
    created_at: datetime

class UserSummary(APIModel):
    """Public part of a user embedded in other payloads."""
    id: str
    username: str

class Token(APIModel):
    """Schema for token response."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
