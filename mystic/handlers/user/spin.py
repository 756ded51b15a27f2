# mystic/handlers/user/spin.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database.models import User
from mystic.keyboards.main import BTN_SPIN
from mystic.services.container import Services
from mystic.services.wheel import MODE_DAILY, NO_SPINS, VISION_DISABLED, SpinResult
from mystic.utils.formatting import reward_line
from mystic.utils.reply import reply_safe

router = Router()


def _render(res: SpinResult) -> str:
    if res.reason == NO_SPINS:
        return "🎡 <b>No spins remaining today (UTC).</b>\nCome back tomorrow!"
    if res.reason == VISION_DISABLED or res.reason == "disabled":
        return "👁 Extra spins via visions are not available right now."
    if res.reason == "cooldown":
        return "⏳ The next vision is not ready yet. Try again later."
    if res.reason == "daily-limit":
        return "👁 You have seen enough visions for today (UTC)."
    if not res.ok:
        return "👁 No vision available."

    return (
        f"🎡 The wheel stops on <b>{res.segment.label}</b>!\n"
        f"• You receive: {reward_line(res.summary)}\n"
        f"• Spins left today: <b>{res.spins_remaining_after}</b>"
    )


@router.message(Command("spin"))
@router.message(lambda m: (m.text or "").strip() == BTN_SPIN)
async def spin_cmd(message: Message, session: AsyncSession, services: Services, db_user: User) -> None:
    status = await services.wheel.spins_remaining(session, db_user.id)
    if status.used >= status.free_limit and status.remaining > 0:
        await reply_safe(
            message,
            f"🎡 Free spins used ({status.used}/{status.free_limit}).\n"
            "Use /vision_spin for a bonus spin.",
        )
        return

    res = await services.wheel.spin(session, db_user.id, MODE_DAILY, attempt_id=f"tg:{message.message_id}")
    await reply_safe(message, _render(res))


@router.message(Command("vision_spin"))
async def vision_spin_cmd(message: Message, session: AsyncSession, services: Services, db_user: User) -> None:
    # the vision stamp is what pays for the bonus spin
    res = await services.vision.vision_spin(session, db_user.id, attempt_id=f"tg:{message.message_id}")
    await reply_safe(message, _render(res))
