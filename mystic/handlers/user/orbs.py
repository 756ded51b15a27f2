# mystic/handlers/user/orbs.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database.models import User
from mystic.keyboards.main import BTN_ORBS
from mystic.services.container import Services
from mystic.utils.formatting import orbs_line
from mystic.utils.reply import reply_safe

router = Router()


@router.message(Command("orbs"))
@router.message(lambda m: (m.text or "").strip() == BTN_ORBS)
async def orbs_cmd(message: Message, session: AsyncSession, services: Services, db_user: User) -> None:
    res = await services.orbs.maybe_regen(session, db_user.id)

    text = orbs_line(res.record, res.next_eta_seconds)
    if res.granted:
        text = f"✨ Regenerated <b>+{res.granted}</b>\n" + text

    await reply_safe(message, text)
