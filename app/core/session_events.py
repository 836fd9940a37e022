from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Literal

logger = logging.getLogger(__name__)

SessionEventType = Literal["SIGNED_IN", "SIGNED_OUT"]


@dataclass(frozen=True)
class SessionEvent:
    type: SessionEventType
    user_id: str
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_session(self) -> bool:
        return self.type != "SIGNED_OUT"

    def as_payload(self) -> dict[str, object]:
        return {"event": self.type, "user_id": self.user_id, "has_session": self.has_session, "at": self.at.isoformat()}

    def as_json(self) -> str:
        return json.dumps(self.as_payload())


class SessionEventBus:
    """Fan-out of session changes to the streams a user has open."""

    def __init__(self) -> None:
        self._subscribers: dict[str, set[asyncio.Queue[SessionEvent]]] = {}

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subscribers.get(user_id, ()))

    def publish(self, event: SessionEvent) -> int:
        queues = list(self._subscribers.get(event.user_id, ()))
        for queue in queues:
            queue.put_nowait(event)
        logger.info("session_event type=%s subscribers=%s", event.type, len(queues))
        return len(queues)

    @asynccontextmanager
    async def subscribe(self, user_id: str) -> AsyncIterator[asyncio.Queue[SessionEvent]]:
        queue: asyncio.Queue[SessionEvent] = asyncio.Queue()
        self._subscribers.setdefault(user_id, set()).add(queue)
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(user_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    self._subscribers.pop(user_id, None)
