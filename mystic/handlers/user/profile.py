# mystic/handlers/user/profile.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database.models import User
from mystic.keyboards.main import BTN_PROFILE
from mystic.services.container import Services
from mystic.services.progression import level_progress
from mystic.utils.formatting import orbs_line
from mystic.utils.reply import reply_safe

router = Router()


@router.message(Command("profile"))
@router.message(lambda m: (m.text or "").strip() == BTN_PROFILE)
async def profile_cmd(message: Message, session: AsyncSession, services: Services, db_user: User) -> None:
    orbs = await services.orbs.maybe_regen(session, db_user.id)
    inventory = await services.inventory.get(session, db_user.id)
    spins = await services.wheel.spins_remaining(session, db_user.id)

    progress = int(level_progress(db_user.xp, db_user.level) * 100)
    text = (
        f"📜 <b>Level {db_user.level}</b> ({db_user.xp} XP, {progress}% to next)\n"
        f"🔥 Streak: <b>{db_user.streak}</b>\n"
        f"{orbs_line(orbs.record, orbs.next_eta_seconds)}\n"
        f"🧊 Streak freezes: <b>{inventory.streak_freeze}</b>\n"
        f"🎡 Spins: {spins.used}/{spins.max} used today"
    )
    await reply_safe(message, text)
