# mystic/scheduler/__init__.py
from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from mystic.config.settings import Settings
from mystic.database.session import Database
from mystic.scheduler.jobs import build_scheduler
from mystic.services.container import Services


def setup_scheduler(db: Database, services: Services, settings: Settings) -> AsyncIOScheduler:
    scheduler = build_scheduler(db=db, services=services, settings=settings)
    scheduler.start()
    return scheduler
