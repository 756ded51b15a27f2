# mystic/utils/reply.py
from __future__ import annotations

from aiogram.enums import ChatType, ParseMode
from aiogram.types import Message

from mystic.keyboards.main import main_menu_kb


async def reply_safe(message: Message, text: str, *, menu: bool = True, **kwargs) -> Message:
    # menu keyboard only in private chats
    private = message.chat.type == ChatType.PRIVATE
    kwargs.setdefault("reply_markup", main_menu_kb() if menu and private else None)
    kwargs.setdefault("parse_mode", ParseMode.HTML)
    return await message.answer(text, **kwargs)
