from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from supabase import Client, ClientOptions, create_client

from app.core.config import settings
from app.schemas.resume import Resume

logger = logging.getLogger(__name__)

RESUMES_TABLE = "resumes"
EXPIRED_LINK_MESSAGE = "Your login link has expired. Please request a new one."


class AuthError(RuntimeError):
    def __init__(self, message: str, *, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code

    @property
    def friendly_message(self) -> str:
        return friendly_auth_message(str(self))


def friendly_auth_message(raw: str | None) -> str:
    text = (raw or "").strip()
    lowered = text.lower()
    if "expired" in lowered or "invalid" in lowered:
        return EXPIRED_LINK_MESSAGE
    return text or "Authentication failed."


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str | None
    access_token: str


@dataclass(frozen=True)
class LinkSession:
    user: SessionUser
    refresh_token: str | None = None
    expires_at: int | None = None


class IdentityProvider(Protocol):
    def get_user(self, access_token: str) -> SessionUser: ...

    def send_magic_link(self, email: str, redirect_to: str) -> None: ...

    def exchange_tokens(self, access_token: str, refresh_token: str) -> LinkSession: ...

    def sign_out(self, access_token: str) -> None: ...


class ResumeRepository(Protocol):
    def insert(self, user: SessionUser, content: str) -> Resume: ...

    def list_for_user(self, user: SessionUser) -> list[Resume]: ...

    def get(self, user: SessionUser, resume_id: str) -> Resume | None: ...


def _require_config() -> tuple[str, str]:
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_ANON_KEY must be set.")
    return settings.supabase_url, settings.supabase_anon_key


def create_supabase(access_token: str | None = None) -> Client:
    url, key = _require_config()
    # Server-side clients never store or refresh a user session.
    client = create_client(url, key, options=ClientOptions(auto_refresh_token=False, persist_session=False))
    if access_token:
        # Row level security on `resumes` is evaluated against the caller's token.
        client.postgrest.auth(access_token)
    return client


def _token_expiry(access_token: str) -> int | None:
    """Read `exp` from the JWT payload without verifying it; Supabase already checked the token."""
    try:
        payload = access_token.split(".")[1]
        claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    except (IndexError, ValueError):
        return None
    exp = claims.get("exp") if isinstance(claims, dict) else None
    return int(exp) if isinstance(exp, (int, float)) else None


class SupabaseIdentityProvider:
    def __init__(self, client: Client | None = None):
        self._client = client or create_supabase()

    def get_user(self, access_token: str) -> SessionUser:
        if not access_token:
            raise AuthError("No active session.")
        try:
            response = self._client.auth.get_user(access_token)
        except Exception as exc:
            raise AuthError(str(exc) or "Invalid session.") from exc
        user = getattr(response, "user", None)
        if user is None:
            raise AuthError("No active session.")
        return SessionUser(id=str(user.id), email=getattr(user, "email", None), access_token=access_token)

    def send_magic_link(self, email: str, redirect_to: str) -> None:
        try:
            self._client.auth.sign_in_with_otp(
                {"email": email, "options": {"email_redirect_to": redirect_to}}
            )
        except Exception as exc:
            raise AuthError(str(exc) or "Unable to send sign-in link.", status_code=400) from exc
        logger.info("magic_link_sent domain=%s", email.rsplit("@", 1)[-1])

    def exchange_tokens(self, access_token: str, refresh_token: str) -> LinkSession:
        """Confirm the link's access token and hand both tokens back unchanged.

        The refresh token is single use, so it is never spent here and no
        session is stored on the shared client.
        """
        if not refresh_token:
            raise AuthError("No valid session found.")
        user = self.get_user(access_token)
        return LinkSession(user=user, refresh_token=refresh_token, expires_at=_token_expiry(access_token))

    def sign_out(self, access_token: str) -> None:
        try:
            self._client.auth.admin.sign_out(access_token)
        except Exception as exc:
            raise AuthError(str(exc) or "Sign out failed.", status_code=400) from exc


def _row_to_resume(row: dict[str, Any]) -> Resume:
    return Resume(
        id=str(row.get("id")),
        content=row.get("content") or "",
        user_id=str(row.get("user_id")),
        created_at=row.get("created_at"),
    )


class SupabaseResumeRepository:
    """Resume rows in the `resumes` table, read and written as the signed-in user."""

    def insert(self, user: SessionUser, content: str) -> Resume:
        client = create_supabase(user.access_token)
        response = client.table(RESUMES_TABLE).insert({"content": content, "user_id": user.id}).execute()
        rows = response.data or []
        if not rows:
            raise RuntimeError("Resume insert returned no rows.")
        return _row_to_resume(rows[0])

    def list_for_user(self, user: SessionUser) -> list[Resume]:
        client = create_supabase(user.access_token)
        response = (
            client.table(RESUMES_TABLE)
            .select("*")
            .eq("user_id", user.id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_row_to_resume(row) for row in (response.data or [])]

    def get(self, user: SessionUser, resume_id: str) -> Resume | None:
        client = create_supabase(user.access_token)
        response = (
            client.table(RESUMES_TABLE)
            .select("*")
            .eq("user_id", user.id)
            .eq("id", resume_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return _row_to_resume(rows[0]) if rows else None
