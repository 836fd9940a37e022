from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings

# Browsers only let the frontend read these when they are exposed.
EXPOSED_HEADERS = ["Content-Disposition", "Retry-After"]


def cors_allowed_origins() -> list[str]:
    return [origin.rstrip("/") for origin in settings.cors_allowed_origins]


def cors_allow_origin_regex() -> str | None:
    regex = (settings.cors_allow_origin_regex or "").strip()
    return regex or None


def install_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_allowed_origins(),
        allow_origin_regex=cors_allow_origin_regex(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-API-Key"],
        expose_headers=EXPOSED_HEADERS,
    )
