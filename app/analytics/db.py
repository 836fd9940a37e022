from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.core.config import settings


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _get_db_path() -> Path:
    return Path(settings.analytics_db_path)


def init_db() -> None:
    if not settings.analytics_enabled:
        return
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS generation_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                created_at TEXT NOT NULL,
                run_id TEXT NOT NULL,
                backend TEXT NOT NULL,
                resume_type TEXT,
                has_job_description INTEGER NOT NULL,
                status TEXT NOT NULL,
                error_code TEXT,
                content_chars INTEGER,
                latency_ms INTEGER
            )
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_generation_runs_created_at
            ON generation_runs (created_at)
            """
        )
        conn.commit()


def log_generation_run(
    *,
    run_id: str,
    backend: str,
    resume_type: str | None,
    has_job_description: bool,
    status: str,
    error_code: str | None = None,
    content_chars: int | None = None,
    latency_ms: int | None = None,
) -> None:
    if not settings.analytics_enabled:
        return
    init_db()
    db_path = _get_db_path()
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            INSERT INTO generation_runs (
                created_at, run_id, backend, resume_type, has_job_description,
                status, error_code, content_chars, latency_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _utc_now(),
                run_id,
                backend,
                resume_type,
                1 if has_job_description else 0,
                status,
                error_code,
                content_chars,
                latency_ms,
            ),
        )
        conn.commit()


def purge_old_records() -> dict[str, int]:
    if not settings.analytics_enabled:
        return {"generation_runs": 0}

    init_db()
    db_path = _get_db_path()
    retention = max(1, int(settings.analytics_retention_days))

    deleted = {"generation_runs": 0}
    with sqlite3.connect(db_path) as conn:
        cur = conn.execute(
            "DELETE FROM generation_runs WHERE created_at < datetime('now', ?)",
            (f"-{retention} days",),
        )
        deleted["generation_runs"] = int(cur.rowcount or 0)
        conn.commit()

    return deleted


def _row_to_dict(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def get_summary() -> dict[str, Any]:
    if not settings.analytics_enabled:
        return {"enabled": False}
    init_db()
    db_path = _get_db_path()
    with sqlite3.connect(db_path) as conn:
        cur = conn.execute("SELECT COUNT(*) FROM generation_runs")
        total = cur.fetchone()[0]
        cur = conn.execute(
            """
            SELECT COUNT(*)
            FROM generation_runs
            WHERE created_at >= datetime('now', '-7 days')
            """
        )
        total_7d = cur.fetchone()[0]
        cur = conn.execute(
            """
            SELECT status, COUNT(*) AS count
            FROM generation_runs
            GROUP BY status
            """
        )
        by_status = {row[0]: row[1] for row in cur.fetchall()}
        cur = conn.execute(
            "SELECT AVG(latency_ms) FROM generation_runs WHERE status = 'success'"
        )
        avg_latency = cur.fetchone()[0]
    return {
        "enabled": True,
        "total": total,
        "total_7d": total_7d,
        "by_status": by_status,
        "avg_success_latency_ms": int(avg_latency) if avg_latency is not None else None,
    }


def get_latest(limit: int = 20, status: str | None = None) -> list[dict[str, Any]]:
    if not settings.analytics_enabled:
        return []
    init_db()
    db_path = _get_db_path()
    with sqlite3.connect(db_path) as conn:
        cur = conn.execute(
            """
            SELECT created_at, run_id, backend, resume_type, has_job_description,
                   status, error_code, content_chars, latency_ms
            FROM generation_runs
            WHERE ? IS NULL OR status = ?
            ORDER BY id DESC
            LIMIT ?
            """,
            (status, status, limit),
        )
        rows = cur.fetchall()
        return [_row_to_dict(cur, row) for row in rows]
