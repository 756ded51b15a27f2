# mystic/handlers/user/rune.py
from __future__ import annotations

import secrets

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database.models import User
from mystic.keyboards.main import BTN_RUNE
from mystic.services.container import Services
from mystic.utils.formatting import orbs_line
from mystic.utils.reply import reply_safe

router = Router()

RUNE_COST_ORBS = 1

ELDER_FUTHARK = (
    "fehu", "uruz", "thurisaz", "ansuz", "raidho", "kenaz", "gebo", "wunjo",
    "hagalaz", "nauthiz", "isa", "jera", "eihwaz", "perthro", "algiz", "sowilo",
    "tiwaz", "berkano", "ehwaz", "mannaz", "laguz", "ingwaz", "dagaz", "othala",
)


@router.message(Command("rune"))
@router.message(lambda m: (m.text or "").strip() == BTN_RUNE)
async def rune_cmd(message: Message, session: AsyncSession, services: Services, db_user: User) -> None:
    # regen first so the spend sees every orb that is due
    await services.orbs.maybe_regen(session, db_user.id)

    rune_id = secrets.choice(ELDER_FUTHARK)
    res = await services.rituals.perform(
        session,
        db_user.id,
        kind="rune_single",
        mode="single",
        cost_orbs=RUNE_COST_ORBS,
        rune_id=rune_id,
    )

    if not res.ok:
        await reply_safe(
            message,
            "😶 <b>Not enough orbs.</b>\n"
            "Wait for regeneration or /watch a vision to earn one.",
        )
        return

    await reply_safe(
        message,
        f"ᚱ You drew <b>{rune_id.title()}</b>\n"
        f"• +<b>{res.xp_awarded}</b> XP (level {res.level})\n"
        f"{orbs_line(res.orbs)}",
    )
