# mystic/scheduler/jobs.py
from __future__ import annotations

import logging
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from mystic.config.settings import Settings
from mystic.database.session import Database
from mystic.services.container import Services
from mystic.utils.dates import utc_now

log = logging.getLogger(__name__)


async def purge_spin_attempts(db: Database, services: Services, ttl_days: int) -> int:
    """
    Drop spin idempotency records past their retry window.
    Economy state never depends on this job running.
    """
    cutoff = utc_now() - timedelta(days=ttl_days)
    async with db.session() as session:
        removed = await services.wheel.purge_attempts(session, cutoff)
        await session.commit()

    if removed:
        log.info("Purged %s spin attempt(s) older than %s", removed, cutoff.isoformat())
    return removed


def build_scheduler(db: Database, services: Services, settings: Settings) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        purge_spin_attempts,
        trigger=CronTrigger(hour=3, minute=17, timezone="UTC"),
        kwargs={"db": db, "services": services, "ttl_days": settings.spin_attempt_ttl_days},
        id="purge_spin_attempts",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    return scheduler
