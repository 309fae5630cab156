"""Pydantic schemas for registration and login."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Request body for creating an account."""

    username: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(min_length=8, max_length=256)
    email: Optional[str] = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    """Request body for logging in."""

    username: str
    password: str


class UserResponse(BaseModel):
    """Public view of a user."""

    id: str
    username: str
    email: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    """Session issued on a successful login."""

    token: str
    expires_at: datetime
    user: UserResponse
