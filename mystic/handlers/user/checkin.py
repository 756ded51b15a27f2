# mystic/handlers/user/checkin.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database.models import User
from mystic.keyboards.main import BTN_CHECKIN
from mystic.services.container import Services
from mystic.services.progression import ACHIEVEMENT_LABELS
from mystic.utils.reply import reply_safe

router = Router()


@router.message(Command("checkin"))
@router.message(lambda m: (m.text or "").strip() == BTN_CHECKIN)
async def checkin_cmd(message: Message, session: AsyncSession, services: Services, db_user: User) -> None:
    res = await services.progression.daily_checkin(session, db_user.id)

    if res.already:
        text = (
            "✅ <b>Already checked in today</b>\n"
            f"• Streak: <b>{res.streak}</b>\n\n"
            "Come back tomorrow (UTC)."
        )
    else:
        text = (
            "🔥 <b>Check-in successful!</b>\n"
            f"• +<b>{res.awarded_xp}</b> XP (level {res.level})\n"
            f"• Streak: <b>{res.streak}</b>"
        )
        if res.freeze_used:
            text += "\n🧊 A streak freeze saved your streak."
        if res.new_achievement:
            text += f"\n🏅 Achievement: <b>{ACHIEVEMENT_LABELS[res.new_achievement]}</b>"

    await reply_safe(message, text)
