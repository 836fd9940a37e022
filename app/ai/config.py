import os
from dataclasses import dataclass

from app.core.config import settings


@dataclass(frozen=True)
class AIConfig:
    backend: str
    model: str
    webhook_url: str
    timeout_s: float


def load_ai_config() -> AIConfig:
    model = os.getenv("AI_MODEL", "gpt-4o-mini").strip()
    return AIConfig(
        backend=settings.generation_backend,
        model=model,
        webhook_url=settings.generation_webhook_url,
        timeout_s=settings.generation_timeout_s,
    )
