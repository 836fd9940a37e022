from __future__ import annotations

from pydantic import BaseModel, Field


class MagicLinkRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class MagicLinkResponse(BaseModel):
    sent: bool = True
    message: str = "Check your email for the login link!"


class AuthCallbackRequest(BaseModel):
    access_token: str | None = None
    refresh_token: str | None = None
    error: str | None = None
    error_description: str | None = None


class SessionResponse(BaseModel):
    has_session: bool
    user_id: str | None = None
    email: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: int | None = None
