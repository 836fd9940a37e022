from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    generation_backend: str
    generation_webhook_url: str
    generation_timeout_s: float
    generation_rate_limit_per_minute: int
    upload_rate_limit_per_minute: int
    request_rate_limit_db_path: str
    supabase_url: str | None
    supabase_anon_key: str | None
    auth_redirect_url: str
    field_history_db_path: str
    field_history_limit: int
    max_upload_bytes: int
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    generation_backend=(_get_env("GENERATION_BACKEND", "webhook") or "webhook").strip().lower(),
    generation_webhook_url=_get_env("GENERATION_WEBHOOK_URL", "http://localhost:5678/webhook/resume_ai")
    or "http://localhost:5678/webhook/resume_ai",
    generation_timeout_s=_get_env_float("GENERATION_TIMEOUT_S", 180.0),
    generation_rate_limit_per_minute=_get_env_int("GENERATION_RATE_LIMIT_PER_MINUTE", 5),
    upload_rate_limit_per_minute=_get_env_int("UPLOAD_RATE_LIMIT_PER_MINUTE", 20),
    request_rate_limit_db_path=_get_env("REQUEST_RATE_LIMIT_DB_PATH", "data/request_rate_limit.db")
    or "data/request_rate_limit.db",
    supabase_url=_get_env("SUPABASE_URL"),
    supabase_anon_key=_get_env("SUPABASE_ANON_KEY"),
    auth_redirect_url=_get_env("AUTH_REDIRECT_URL", "http://localhost:3000/auth/callback")
    or "http://localhost:3000/auth/callback",
    field_history_db_path=_get_env("FIELD_HISTORY_DB_PATH", "data/field_history.db") or "data/field_history.db",
    field_history_limit=_get_env_int("FIELD_HISTORY_LIMIT", 5),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX", r"^https:\/\/[a-z0-9-]+-.*\.vercel\.app$"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", True),
    analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
    analytics_db_path=_get_env("ANALYTICS_DB_PATH", "data/analytics.db") or "data/analytics.db",
    analytics_retention_days=_get_env_int("ANALYTICS_RETENTION_DAYS", 90),
)

if settings.generation_backend not in {"webhook", "openai"}:
    raise RuntimeError("GENERATION_BACKEND must be either 'webhook' or 'openai'.")

if settings.generation_timeout_s <= 0:
    raise RuntimeError("GENERATION_TIMEOUT_S must be a positive number of seconds.")

if settings.field_history_limit < 1:
    raise RuntimeError("FIELD_HISTORY_LIMIT must be at least 1.")
