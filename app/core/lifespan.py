import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from app.analytics.db import init_db, purge_old_records
from app.api.dependencies import get_generation_client

logger = logging.getLogger(__name__)

PURGE_INTERVAL_S = 3600


async def _purge_until_stopped(stop_event: asyncio.Event) -> None:
    while not stop_event.is_set():
        try:
            deleted = purge_old_records()
            if any(deleted.values()):
                logger.info("analytics_retention_purge deleted=%s", deleted)
        except Exception as exc:  # pragma: no cover - purge failures only skip one cycle
            logger.warning("analytics_retention_purge_failed: %s", exc)
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=PURGE_INTERVAL_S)


@asynccontextmanager
async def lifespan(app):
    # In-flight generation pipelines, keyed by user id.
    app.state.pipelines = {}
    init_db()

    stop_event = asyncio.Event()
    purge_task = asyncio.create_task(_purge_until_stopped(stop_event))
    try:
        yield
    finally:
        stop_event.set()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
        if get_generation_client.cache_info().currsize:
            await get_generation_client().aclose()
        logger.info("shutdown_complete pending_pipelines=%s", len(app.state.pipelines))
