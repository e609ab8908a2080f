"""Pydantic request/response schemas for cb_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

import re
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[a-zA-Z0-9_]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    name: str = Field(..., min_length=1, max_length=128)
    # Admins are never self-registered
    user_type: Literal["client", "merchant"] = "client"
    store_name: str | None = Field(None, min_length=1, max_length=128)
    referral_code: str | None = Field(None, min_length=4, max_length=16)

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        """Enforce: at least one uppercase, one lowercase, one digit."""
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one digit")
        return v

    @model_validator(mode="after")
    def merchant_needs_store(self) -> "RegisterRequest":
        if self.user_type == "merchant" and not self.store_name:
            raise ValueError("store_name is required for merchants")
        return self


class LoginRequest(BaseModel):
    username: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    """Minimal user info embedded in responses."""

    user_id: str
    username: str
    email: str
    name: str
    user_type: str
    invitation_code: str


class RegisterResponse(BaseModel):
    user_id: str
    username: str
    email: str
    user_type: str
    invitation_code: str
    referred_by: str | None
    created_at: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800  # 30 minutes in seconds
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int = 1800
