from __future__ import annotations

import json
import logging

from app.core.kv_store import KeyValueStore
from app.normalize.sanitize import clean_text
from app.schemas.resume import FormData
from app.services.resume_form import non_empty_fields

logger = logging.getLogger(__name__)

FIELD_HISTORY_NAMESPACE = "resumeFieldHistory"
DEFAULT_HISTORY_LIMIT = 5


def history_key(owner_id: str | None = None) -> str:
    if not owner_id:
        return FIELD_HISTORY_NAMESPACE
    return f"{FIELD_HISTORY_NAMESPACE}:{owner_id}"


class FieldHistoryStore:
    """Recently used values per form field, most recent first."""

    def __init__(self, store: KeyValueStore, *, key: str = FIELD_HISTORY_NAMESPACE, limit: int = DEFAULT_HISTORY_LIMIT):
        self._store = store
        self._key = key
        self._limit = limit

    def load(self) -> dict[str, list[str]]:
        raw = self._store.get(self._key)
        if not raw:
            return {}
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("field_history_corrupt key=%s", self._key)
            return {}
        if not isinstance(payload, dict):
            return {}
        return {
            str(field): [str(item) for item in values if isinstance(item, str)]
            for field, values in payload.items()
            if isinstance(values, list)
        }

    def suggestions(self, field_name: str) -> list[str]:
        return self.load().get(field_name, [])

    def record(self, field_name: str, value: str) -> dict[str, list[str]]:
        value = clean_text(value)
        if not value:
            return self.load()

        history = self.load()
        previous = [item for item in history.get(field_name, []) if item != value]
        history[field_name] = [value, *previous][: self._limit]
        self._store.set(self._key, json.dumps(history, ensure_ascii=False))
        return history

    def record_form(self, form: FormData) -> dict[str, list[str]]:
        history = self.load()
        for field_name, value in non_empty_fields(form).items():
            history = self.record(field_name, value)
        return history
