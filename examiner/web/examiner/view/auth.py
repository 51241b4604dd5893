"""View models for authentication endpoints."""

from __future__ import annotations

import datetime

import pydantic as p
from pydantic import EmailStr

from examiner.model import BaseModel, UserID, UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: p.SecretStr


class UserResponse(BaseModel):
    user_id: UserID
    email: EmailStr
    name: str
    role: UserRole


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime.datetime


class LoginResponse(BaseModel):
    user: UserResponse
    token: TokenResponse
