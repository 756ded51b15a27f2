# mystic/database/repo/users.py
from __future__ import annotations

from typing import Optional

from aiogram.types import TelegramObject
from aiogram.types import User as TgUser
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database.models import User


def _sender(event: TelegramObject) -> Optional[TgUser]:
    # Update -> Message / CallbackQuery -> from_user
    for obj in (event, getattr(event, "message", None), getattr(event, "callback_query", None)):
        tg = getattr(obj, "from_user", None) if obj is not None else None
        if tg is not None:
            return tg
    return None


def _sync_profile(row: User, tg: TgUser) -> None:
    row.username = tg.username
    row.first_name = tg.first_name
    row.last_name = tg.last_name


async def get_user_by_telegram_id(session: AsyncSession, telegram_id: int) -> Optional[User]:
    return await session.scalar(select(User).where(User.telegram_id == telegram_id))


async def upsert_user_from_event(session: AsyncSession, event: TelegramObject) -> Optional[User]:
    """
    Profile row for the sender of `event`, created on first contact.
    None for updates that carry no sender (channel posts and the like).
    """
    tg = _sender(event)
    if tg is None:
        return None

    row = await get_user_by_telegram_id(session, tg.id)
    if row is None:
        row = User(telegram_id=tg.id)
        _sync_profile(row, tg)
        try:
            async with session.begin_nested():
                session.add(row)
                await session.flush()
            return row
        except IntegrityError:
            # first contact raced with another update from the same sender
            row = await get_user_by_telegram_id(session, tg.id)
            if row is None:
                raise

    _sync_profile(row, tg)
    return row


async def set_pro_entitlement(session: AsyncSession, telegram_id: int, enabled: bool) -> bool:
    """
    Admin/billing writer for the Pro flag. False when no such user.
    """
    res = await session.execute(
        update(User)
        .where(User.telegram_id == telegram_id)
        .values(pro_entitlement=enabled)
        .execution_options(synchronize_session=False)
    )
    return (res.rowcount or 0) > 0
