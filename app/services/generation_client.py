from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Union

from app.ai.types import BackendResponse, GenerationBackend, GenerationError, RequestTimeout, UpstreamError
from app.normalize.markdown_html import markdown_to_html

logger = logging.getLogger(__name__)

__all__ = [
    "EmptyContent",
    "GeneratedContent",
    "GenerationClient",
    "GenerationError",
    "RequestTimeout",
    "UpstreamError",
    "parse_generation_payload",
]


@dataclass(frozen=True)
class GeneratedContent:
    text: str


@dataclass(frozen=True)
class EmptyContent:
    reason: str


GenerationPayload = Union[GeneratedContent, EmptyContent]


def parse_generation_payload(payload: Any) -> GenerationPayload:
    """Pull the completion text out of the webhook response.

    The expected body is a list of completion objects, each with a
    ``choices`` list whose entries carry ``message.content``. The first
    string content found wins. Any other shape is reported as empty
    content rather than an error.
    """
    if not isinstance(payload, list) or not payload:
        return EmptyContent(reason="not_a_list")

    for item in payload:
        if not isinstance(item, dict):
            continue
        choices = item.get("choices")
        if not isinstance(choices, list):
            continue
        for choice in choices:
            if not isinstance(choice, dict):
                continue
            message = choice.get("message")
            if not isinstance(message, dict):
                continue
            content = message.get("content")
            if isinstance(content, str) and content:
                return GeneratedContent(text=content)

    return EmptyContent(reason="no_choice_content")


class GenerationClient:
    def __init__(self, backend: GenerationBackend, *, timeout_s: float = 180.0):
        self._backend = backend
        self._timeout_s = timeout_s

    @property
    def backend_name(self) -> str:
        return getattr(self._backend, "name", "unknown")

    async def _send(self, payload: dict[str, Any]) -> BackendResponse:
        try:
            return await asyncio.wait_for(self._backend.send(payload), timeout=self._timeout_s)
        except asyncio.TimeoutError as exc:
            raise RequestTimeout() from exc

    async def generate(self, payload: dict[str, Any]) -> str:
        """Send one form payload and return the display-ready HTML."""
        response = await self._send(payload)
        if not response.ok:
            logger.warning(
                "generation_upstream_status backend=%s status=%s",
                self.backend_name,
                response.status_code,
            )
            raise UpstreamError(f"Webhook returned status {response.status_code}", code="upstream_status")

        try:
            body = json.loads(response.text)
        except json.JSONDecodeError as exc:
            logger.error(
                "generation_upstream_not_json backend=%s body_len=%s",
                self.backend_name,
                len(response.text or ""),
            )
            raise UpstreamError("Invalid JSON returned from webhook", code="invalid_json") from exc

        parsed = parse_generation_payload(body)
        if isinstance(parsed, EmptyContent):
            logger.info("generation_empty_content backend=%s reason=%s", self.backend_name, parsed.reason)
            return ""
        return markdown_to_html(parsed.text)

    async def aclose(self) -> None:
        await self._backend.aclose()
