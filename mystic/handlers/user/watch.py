# mystic/handlers/user/watch.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database.models import User
from mystic.keyboards.main import BTN_WATCH
from mystic.services.container import Services
from mystic.services.orb_math import format_time_remaining
from mystic.utils.formatting import orbs_line
from mystic.utils.reply import reply_safe

router = Router()

_REFUSALS = {
    "disabled": "👁 Visions are switched off right now.",
    "pro": "✨ Pro seekers never need visions: your orbs are unlimited.",
    "daily-limit": "👁 You have seen enough visions for today (UTC).",
}


@router.message(Command("watch"))
@router.message(lambda m: (m.text or "").strip() == BTN_WATCH)
async def watch_cmd(message: Message, session: AsyncSession, services: Services, db_user: User) -> None:
    eligibility = await services.vision.check_eligibility(session, db_user.id)
    if eligibility.reason == "cooldown":
        await reply_safe(
            message,
            f"⏳ The next vision appears in {format_time_remaining(eligibility.cooldown_eta_sec)}.",
        )
        return
    if not eligibility.enabled:
        await reply_safe(message, _REFUSALS.get(eligibility.reason, "👁 No vision available."))
        return

    # ad playback is handled by the client; completing here credits the orb
    res = await services.vision.complete_watch(session, db_user.id)
    if not res.ok:
        await reply_safe(message, _REFUSALS.get(res.reason, "👁 No vision available."))
        return

    await reply_safe(
        message,
        f"👁 <b>Vision complete.</b> +{res.orbs_granted} orb\n{orbs_line(res.record)}",
    )
