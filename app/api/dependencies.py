"""Collaborators shared by the API routes.

Each factory builds its collaborator once per process. Tests swap them
through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException, Request, status

from app.ai.factory import get_generation_backend
from app.core.config import settings
from app.core.kv_store import KeyValueStore, SqliteKeyValueStore
from app.core.rate_limit import client_key
from app.core.request_rate_limit import RequestRateLimitExceeded, enforce_request_rate_limit
from app.core.security import bearer_token
from app.core.session_events import SessionEventBus
from app.integrations.supabase_client import (
    AuthError,
    IdentityProvider,
    ResumeRepository,
    SessionUser,
    SupabaseIdentityProvider,
    SupabaseResumeRepository,
)
from app.services.field_history import FieldHistoryStore, history_key
from app.services.generation_client import GenerationClient
from app.services.generation_pipeline import GenerationPipeline, GenerationState


@lru_cache(maxsize=1)
def get_identity_provider() -> IdentityProvider:
    return SupabaseIdentityProvider()


@lru_cache(maxsize=1)
def get_resume_repository() -> ResumeRepository:
    return SupabaseResumeRepository()


@lru_cache(maxsize=1)
def get_kv_store() -> KeyValueStore:
    return SqliteKeyValueStore(settings.field_history_db_path)


@lru_cache(maxsize=1)
def get_generation_client() -> GenerationClient:
    return GenerationClient(get_generation_backend(), timeout_s=settings.generation_timeout_s)


@lru_cache(maxsize=1)
def get_session_bus() -> SessionEventBus:
    return SessionEventBus()


def get_access_token(authorization: str | None = Header(default=None)) -> str:
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No active session. Please sign in.")
    return token


def get_current_user(
    token: str = Depends(get_access_token),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> SessionUser:
    try:
        return identity.get_user(token)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.friendly_message) from exc


def get_field_history(
    user: SessionUser = Depends(get_current_user),
    store: KeyValueStore = Depends(get_kv_store),
) -> FieldHistoryStore:
    return FieldHistoryStore(store, key=history_key(user.id), limit=settings.field_history_limit)


async def get_generation_pipeline(
    request: Request,
    user: SessionUser = Depends(get_current_user),
    client: GenerationClient = Depends(get_generation_client),
    repository: ResumeRepository = Depends(get_resume_repository),
    history: FieldHistoryStore = Depends(get_field_history),
) -> GenerationPipeline:
    # Requests from one user share a pipeline until it settles, so a second submit is rejected.
    pipelines: dict[str, GenerationPipeline] = request.app.state.pipelines
    pipeline = pipelines.get(user.id)
    if pipeline is None:
        pipeline = GenerationPipeline(client, repository, user, history=history)
        pipelines[user.id] = pipeline
    return pipeline


def release_generation_pipeline(request: Request, pipeline: GenerationPipeline) -> None:
    """Forget a settled pipeline so the registry only holds submits in flight."""
    pipelines: dict[str, GenerationPipeline] = request.app.state.pipelines
    if pipeline.state is not GenerationState.SUBMITTING and pipelines.get(pipeline.owner_id) is pipeline:
        del pipelines[pipeline.owner_id]


def route_rate_limit(limit_per_minute: int):
    def dependency(request: Request) -> None:
        if not settings.rate_limit_enabled:
            return
        try:
            enforce_request_rate_limit(
                client_key=client_key(request),
                route_key=request.url.path,
                limit=limit_per_minute,
            )
        except RequestRateLimitExceeded as exc:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please wait a minute and try again.",
                headers={"Retry-After": str(exc.retry_after_s)},
            ) from exc

    return dependency
