# mystic/keyboards/main.py
from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

BTN_ORBS = "🔮 Orbs"
BTN_RUNE = "ᚱ Rune"
BTN_SPIN = "🎡 Spin"
BTN_WATCH = "👁 Vision"
BTN_CHECKIN = "✅ Check-in"
BTN_PROFILE = "📜 Profile"


def main_menu_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=BTN_ORBS), KeyboardButton(text=BTN_RUNE)],
            [KeyboardButton(text=BTN_SPIN), KeyboardButton(text=BTN_WATCH)],
            [KeyboardButton(text=BTN_CHECKIN), KeyboardButton(text=BTN_PROFILE)],
        ],
        resize_keyboard=True,
        input_field_placeholder="Choose a ritual…",
        one_time_keyboard=False,
    )
