# mystic/main.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from mystic.config import Settings
from mystic.database import Database
from mystic.handlers import router as handlers_router
from mystic.scheduler import setup_scheduler
from mystic.services.container import Services, build_services
from mystic.utils.middleware import DbSessionMiddleware

log = logging.getLogger("mystic")

_QUIET_LOGGERS = ("sqlalchemy", "aiosqlite", "asyncpg", "apscheduler", "aiogram.event")


def setup_logging(is_dev: bool) -> None:
    """
    App logs at INFO (DEBUG in dev); library chatter at WARNING+.
    """
    logging.basicConfig(
        level=logging.DEBUG if is_dev else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def build_dispatcher(settings: Settings, db: Database, services: Services) -> Dispatcher:
    # keyword arguments land in workflow_data and are injected into handlers by name
    dp = Dispatcher(settings=settings, db=db, services=services)
    dp.update.middleware(DbSessionMiddleware(db))
    dp.include_router(handlers_router)
    return dp


async def main() -> None:
    settings = Settings.load()
    setup_logging(settings.is_dev)

    db = Database(settings.database_url)
    await db.init_models()
    log.info("DB initialized")

    services = build_services(settings.orb_economy())
    econ = services.orbs.config
    log.info(
        "Orb economy: free_max=%s regen=%s/%ss pro_max=%s",
        econ.free_max, econ.free_regen_per_hour, econ.regen_interval_sec, econ.pro_max,
    )

    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = build_dispatcher(settings, db, services)

    scheduler = setup_scheduler(db=db, services=services, settings=settings)
    log.info("Scheduler started")

    try:
        await dp.start_polling(bot)
    except Exception:
        log.exception("Bot crashed")
        raise
    finally:
        scheduler.shutdown(wait=False)
        for name, closer in (("DB", db.close), ("bot session", bot.session.close)):
            try:
                await closer()
            except Exception:
                log.exception("Failed to close %s", name)


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        log.info("Stopped")


if __name__ == "__main__":
    run()
