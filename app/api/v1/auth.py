import asyncio
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from app.api.dependencies import get_access_token, get_current_user, get_identity_provider, get_session_bus
from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.session_events import SessionEvent, SessionEventBus
from app.integrations.supabase_client import AuthError, IdentityProvider, SessionUser, friendly_auth_message
from app.schemas.auth import AuthCallbackRequest, MagicLinkRequest, MagicLinkResponse, SessionResponse
from app.utils.sse import sse

logger = logging.getLogger(__name__)

router = APIRouter()

KEEPALIVE_INTERVAL_S = 15.0


def _auth_http_error(exc: AuthError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.friendly_message)


@router.post("/auth/magic-link", response_model=MagicLinkResponse)
@rate_limit()
async def send_magic_link(
    request: Request,
    payload: MagicLinkRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
):
    _ = request
    try:
        await asyncio.to_thread(identity.send_magic_link, payload.email.strip(), settings.auth_redirect_url)
    except AuthError as exc:
        raise _auth_http_error(exc) from exc
    return MagicLinkResponse()


@router.post("/auth/callback", response_model=SessionResponse)
async def auth_callback(
    payload: AuthCallbackRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
    bus: SessionEventBus = Depends(get_session_bus),
):
    if payload.error or payload.error_description:
        logger.info("auth_callback_rejected error=%s", payload.error or "unknown")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=friendly_auth_message(payload.error_description or payload.error),
        )
    if not payload.access_token or not payload.refresh_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid session found.")

    try:
        session = await asyncio.to_thread(identity.exchange_tokens, payload.access_token, payload.refresh_token)
    except AuthError as exc:
        raise _auth_http_error(exc) from exc

    bus.publish(SessionEvent(type="SIGNED_IN", user_id=session.user.id))
    return SessionResponse(
        has_session=True,
        user_id=session.user.id,
        email=session.user.email,
        access_token=session.user.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
    )


@router.get("/auth/session", response_model=SessionResponse)
async def current_session(user: SessionUser = Depends(get_current_user)):
    return SessionResponse(has_session=True, user_id=user.id, email=user.email)


@router.post("/auth/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    user: SessionUser = Depends(get_current_user),
    token: str = Depends(get_access_token),
    identity: IdentityProvider = Depends(get_identity_provider),
    bus: SessionEventBus = Depends(get_session_bus),
):
    try:
        await asyncio.to_thread(identity.sign_out, token)
    except AuthError as exc:
        raise _auth_http_error(exc) from exc
    bus.publish(SessionEvent(type="SIGNED_OUT", user_id=user.id))


async def session_event_stream(
    bus: SessionEventBus,
    user: SessionUser,
    request: Request | None = None,
    *,
    keepalive_s: float = KEEPALIVE_INTERVAL_S,
) -> AsyncGenerator[str, None]:
    """Yield session changes for one user until they sign out or disconnect."""
    async with bus.subscribe(user.id) as queue:
        yield sse("SESSION", SessionEvent(type="SIGNED_IN", user_id=user.id).as_json())
        while True:
            if request is not None and await request.is_disconnected():
                return
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_s)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield sse(event.type, event.as_json())
            if not event.has_session:
                return


@router.get("/auth/events")
async def session_events(
    request: Request,
    user: SessionUser = Depends(get_current_user),
    bus: SessionEventBus = Depends(get_session_bus),
):
    return StreamingResponse(
        session_event_stream(bus, user, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
