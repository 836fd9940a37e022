from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional

from openai import APIStatusError, APITimeoutError, AsyncOpenAI, OpenAIError

from app.ai.prompt import build_resume_messages
from app.ai.types import BackendResponse, RequestTimeout, UpstreamError

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """Generates the résumé with a chat completion instead of the webhook.

    The completion is returned in the webhook's response shape, a list of
    completion objects, so both backends share one response parser.
    """

    name = "openai"

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 180.0,
        max_retries: int = 0,
        temperature: float = 0.4,
        client: AsyncOpenAI | None = None,
    ):
        self._model = model
        self._temperature = temperature
        if client is not None:
            self._client = client
            return

        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    async def send(self, payload: dict[str, Any]) -> BackendResponse:
        messages = [{"role": m.role, "content": m.content} for m in build_resume_messages(payload)]
        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
            )
        except APITimeoutError as exc:
            raise RequestTimeout() from exc
        except APIStatusError as exc:
            return BackendResponse(status_code=exc.status_code, text=exc.response.text)
        except OpenAIError as exc:
            logger.warning("generation_openai_failed model=%s: %s", self._model, exc)
            raise UpstreamError(str(exc) or "OpenAI request failed", code="transport_error") from exc

        body = [completion.model_dump(mode="json")]
        return BackendResponse(status_code=200, text=json.dumps(body, ensure_ascii=False))

    async def aclose(self) -> None:
        await self._client.close()
