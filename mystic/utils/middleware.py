# mystic/utils/middleware.py
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Update

from mystic.database.repo.users import upsert_user_from_event
from mystic.database.session import Database

log = logging.getLogger(__name__)

Handler = Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]]


class DbSessionMiddleware(BaseMiddleware):
    """
    Unit of work per update.

    Handlers receive `session` and `db_user` (the sender's profile, or None
    for updates without a sender). Everything the handler wrote is committed
    when it returns and discarded when it raises.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def __call__(self, handler: Handler, event: TelegramObject, data: Dict[str, Any]) -> Any:
        async with self.db.session() as session:
            data["session"] = session
            data["db_user"] = await upsert_user_from_event(session, event)

            try:
                result = await handler(event, data)
            except Exception:
                await session.rollback()
                update_id = event.update_id if isinstance(event, Update) else None
                log.warning("rolled back update_id=%s", update_id)
                raise

            await session.commit()
            return result
