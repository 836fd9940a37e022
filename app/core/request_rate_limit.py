from __future__ import annotations

import logging
import os
import sqlite3
import threading
import time
from functools import lru_cache

from app.core.config import settings

logger = logging.getLogger(__name__)


class RequestRateLimitExceeded(Exception):
    def __init__(self, retry_after_s: int):
        super().__init__(f"Rate limit exceeded; retry in {retry_after_s}s.")
        self.retry_after_s = retry_after_s


class SlidingWindowLimiter:
    """Per-client, per-route request counter persisted in SQLite.

    Generation calls are slow and billed upstream, so the window survives
    restarts and is shared between workers on one host.
    """

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn

        directory = os.path.dirname(self._db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=5, isolation_level=None)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA busy_timeout=5000;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS request_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                client_key TEXT NOT NULL,
                route_key TEXT NOT NULL,
                created_at REAL NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_request_events_lookup
            ON request_events (client_key, route_key, created_at);
            """
        )
        self._conn = conn
        return conn

    def hit(self, *, client_key: str, route_key: str, limit: int, window_seconds: int = 60) -> int:
        """Count one request; return how many remain in the window."""
        now = time.time()
        cutoff = now - window_seconds

        with self._lock:
            conn = self._connection()
            conn.execute("BEGIN IMMEDIATE")
            try:
                conn.execute("DELETE FROM request_events WHERE created_at < ?", (cutoff,))
                count, oldest = conn.execute(
                    """
                    SELECT COUNT(1), MIN(created_at)
                    FROM request_events
                    WHERE client_key = ? AND route_key = ? AND created_at >= ?
                    """,
                    (client_key, route_key, cutoff),
                ).fetchone()
                if int(count or 0) >= limit:
                    conn.execute("ROLLBACK")
                    retry_after = max(1, int((oldest or now) + window_seconds - now))
                    logger.info("request_rate_limited route=%s retry_after=%s", route_key, retry_after)
                    raise RequestRateLimitExceeded(retry_after)

                conn.execute(
                    "INSERT INTO request_events (client_key, route_key, created_at) VALUES (?, ?, ?)",
                    (client_key, route_key, now),
                )
                conn.execute("COMMIT")
            except RequestRateLimitExceeded:
                raise
            except Exception:
                conn.execute("ROLLBACK")
                raise
        return limit - int(count or 0) - 1

    def clear(self) -> None:
        with self._lock:
            self._connection().execute("DELETE FROM request_events")


@lru_cache(maxsize=1)
def get_request_limiter() -> SlidingWindowLimiter:
    return SlidingWindowLimiter(settings.request_rate_limit_db_path)


def enforce_request_rate_limit(client_key: str, route_key: str, limit: int, window_seconds: int = 60) -> int:
    return get_request_limiter().hit(
        client_key=client_key,
        route_key=route_key,
        limit=limit,
        window_seconds=window_seconds,
    )


def clear_request_rate_limit_events() -> None:
    get_request_limiter().clear()
