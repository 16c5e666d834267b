"""Celery worker running the daily wallpaper refresh."""

from __future__ import annotations

import asyncio
import logging

from celery import Celery
from celery.schedules import crontab

from nebula.config.settings import get_settings
from nebula.monitoring.logging import configure_logging
from nebula.runtime import build_runtime
from nebula.services.refresh import refresh_wallpaper

logger = logging.getLogger(__name__)

REFRESH_TASK_NAME = "nebula.refresh_wallpaper"

settings = get_settings()

celery_app = Celery(
    "refresh_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

if settings.auto_refresh:
    celery_app.conf.beat_schedule = {
        "daily-wallpaper-refresh": {
            "task": REFRESH_TASK_NAME,
            "schedule": crontab(hour=settings.refresh_hour, minute=0),
        },
    }


async def _run_refresh() -> dict[str, object]:
    current = get_settings()
    runtime = build_runtime(current)
    try:
        await runtime.store.restore()
        # A missing key still runs the cycle so the scheduler gets a failed outcome.
        credential = await asyncio.to_thread(runtime.credential)
        outcome = await refresh_wallpaper(
            runtime.orchestrator,
            runtime.preferences,
            credential,
            timeout=current.refresh_timeout,
        )
    finally:
        await runtime.close()
    return outcome.as_dict()


@celery_app.task(name=REFRESH_TASK_NAME)
def refresh_wallpaper_task() -> dict[str, object]:
    """Entry point invoked by celery beat once a day."""

    configure_logging()
    result = asyncio.run(_run_refresh())
    logger.info("Wallpaper refresh finished: %s", result["message"])
    return result
