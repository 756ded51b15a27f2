# mystic/handlers/admin/features.py
from __future__ import annotations

import html
import logging
from dataclasses import asdict

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.config.settings import Settings
from mystic.database.repo.features_repo import get_features, parse_feature_value, set_features

log = logging.getLogger(__name__)
router = Router()

USAGE = "Usage: <code>/setfeature &lt;name&gt; &lt;value&gt;</code>"


def _features_table(values: dict) -> str:
    return "\n".join(f"• <code>{name}</code> = <b>{value}</b>" for name, value in values.items())


@router.message(Command("setfeature"))
async def setfeature_cmd(message: Message, command: CommandObject, session: AsyncSession, settings: Settings) -> None:
    if not message.from_user or message.from_user.id not in settings.root_admin_ids:
        return

    parts = (command.args or "").split()
    if not parts:
        current = asdict(await get_features(session))
        await message.answer(f"⚙️ Features:\n{_features_table(current)}\n\n{USAGE}", parse_mode="HTML")
        return

    if len(parts) != 2:
        await message.answer(USAGE, parse_mode="HTML")
        return

    name, raw = parts
    try:
        value = parse_feature_value(name, raw)
    except ValueError as e:
        await message.answer(f"❌ {html.escape(str(e))}\n{USAGE}", parse_mode="HTML")
        return

    await set_features(session, **{name: value})
    log.info("admin %s set feature %s=%s", message.from_user.id, name, value)
    await message.answer(f"✅ <code>{name}</code> = <b>{value}</b>", parse_mode="HTML")
