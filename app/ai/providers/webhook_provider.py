from __future__ import annotations

import logging
from typing import Any

import httpx

from app.ai.types import BackendResponse, RequestTimeout, UpstreamError

logger = logging.getLogger(__name__)


class WebhookProvider:
    name = "webhook"

    def __init__(
        self,
        url: str,
        *,
        timeout_s: float = 180.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not url:
            raise RuntimeError("GENERATION_WEBHOOK_URL is missing")
        self._url = url
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def send(self, payload: dict[str, Any]) -> BackendResponse:
        try:
            response = await self._client.post(self._url, json=payload)
        except httpx.TimeoutException as exc:
            raise RequestTimeout() from exc
        except httpx.HTTPError as exc:
            logger.warning("generation_webhook_transport_failed error=%s", exc.__class__.__name__)
            raise UpstreamError(str(exc) or "Failed to post to webhook", code="transport_error") from exc
        return BackendResponse(status_code=response.status_code, text=response.text)

    async def aclose(self) -> None:
        await self._client.aclose()
