from app.ai.config import load_ai_config
from app.ai.types import GenerationBackend

from app.ai.providers.openai_provider import OpenAIProvider
from app.ai.providers.webhook_provider import WebhookProvider


def get_generation_backend() -> GenerationBackend:
    cfg = load_ai_config()

    if cfg.backend == "webhook":
        return WebhookProvider(cfg.webhook_url, timeout_s=cfg.timeout_s)

    if cfg.backend == "openai":
        return OpenAIProvider(model=cfg.model, timeout_s=cfg.timeout_s)

    raise ValueError(f"Unsupported GENERATION_BACKEND='{cfg.backend}'")
