# mystic/handlers/admin/pro.py
from __future__ import annotations

import logging

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.config.settings import Settings
from mystic.database.repo.users import set_pro_entitlement

log = logging.getLogger(__name__)
router = Router()

USAGE = "Usage: <code>/setpro &lt;telegram_id&gt; on|off</code>"


@router.message(Command("setpro"))
async def setpro_cmd(message: Message, command: CommandObject, session: AsyncSession, settings: Settings) -> None:
    if not message.from_user or message.from_user.id not in settings.root_admin_ids:
        return

    parts = (command.args or "").split()
    if len(parts) != 2 or parts[1].lower() not in {"on", "off"}:
        await message.answer(USAGE, parse_mode="HTML")
        return

    try:
        telegram_id = int(parts[0])
    except ValueError:
        await message.answer(USAGE, parse_mode="HTML")
        return

    enabled = parts[1].lower() == "on"
    found = await set_pro_entitlement(session, telegram_id, enabled)
    if not found:
        await message.answer("❌ User not found.")
        return

    log.info("admin %s set pro=%s for telegram_id=%s", message.from_user.id, enabled, telegram_id)
    await message.answer(f"✅ Pro {'enabled' if enabled else 'disabled'} for {telegram_id}.")
