"""View models for authentication."""

from __future__ import annotations

import datetime

import pydantic as p

from stagegate.model import UserID, UserRole


class LoginRequest(p.BaseModel):
    email: p.EmailStr
    password: str


class UserResponse(p.BaseModel):
    user_id: UserID
    email: str
    name: str
    role: UserRole
    department: str | None = None


class TokenResponse(p.BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime.datetime


class LoginResponse(p.BaseModel):
    user: UserResponse
    token: TokenResponse
