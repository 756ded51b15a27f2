# mystic/handlers/common.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from mystic.utils.reply import reply_safe

router = Router(name="common")


@router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    await reply_safe(
        message,
        "🔮 <b>Welcome, seeker.</b>\n\n"
        "Draw runes, spin the wheel and keep your streak alive.\n"
        "Use /help to see commands.",
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await reply_safe(
        message,
        "📌 Available commands:\n"
        "/orbs - your orb balance\n"
        "/rune - draw a rune (1 orb)\n"
        "/spin - daily wheel spin\n"
        "/vision_spin - bonus spin after a vision\n"
        "/watch - watch a vision, earn an orb\n"
        "/checkin - daily check-in\n"
        "/profile - level, XP and inventory",
    )
