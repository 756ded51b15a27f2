from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from aiogram.filters import CommandObject

from mystic.config.settings import Settings
from mystic.database.repo.features_repo import (
    DEFAULT_FEATURES,
    get_features,
    parse_feature_value,
    set_features,
)
from mystic.handlers.admin.features import setfeature_cmd


async def test_missing_row_yields_defaults(session):
    f = await get_features(session)

    assert f == DEFAULT_FEATURES
    assert (f.wheel_daily_free, f.wheel_daily_free_pro, f.wheel_daily_max) == (1, 2, 5)
    assert f.wheel_allow_vision_extra
    assert (f.watch_cooldown_min, f.watch_daily_limit) == (30, 5)


async def test_set_features(session):
    await set_features(session, wheel_daily_max=8, wheel_allow_vision_extra=False)
    await session.commit()

    f = await get_features(session)
    assert f.wheel_daily_max == 8
    assert not f.wheel_allow_vision_extra
    assert f.wheel_daily_free == 1


async def test_unknown_field(session):
    with pytest.raises(ValueError):
        await set_features(session, wheel_jackpot=True)


@pytest.mark.parametrize(
    "name, raw, expected",
    [
        ("wheel_daily_max", "8", 8),
        ("wheel_allow_vision_extra", "off", False),
        ("watch_to_earn_enabled", "ON", True),
        ("watch_cooldown_min", "0", 0),
    ],
)
def test_parse_feature_value(name, raw, expected):
    assert parse_feature_value(name, raw) == expected


@pytest.mark.parametrize(
    "name, raw",
    [("wheel_jackpot", "1"), ("wheel_daily_max", "many"), ("wheel_daily_max", "-1"), ("watch_to_earn_enabled", "maybe")],
)
def test_parse_feature_value_rejects(name, raw):
    with pytest.raises(ValueError):
        parse_feature_value(name, raw)


ADMIN_ID = 951258732


def admin_message(sender_id: int = ADMIN_ID):
    return SimpleNamespace(from_user=SimpleNamespace(id=sender_id), answer=AsyncMock())


def settings() -> Settings:
    return Settings(bot_token="42:TEST", bot_username="mystic_bot", root_admin_ids=(ADMIN_ID,))


async def test_setfeature_command_updates_config(session):
    message = admin_message()

    await setfeature_cmd(message, CommandObject(command="setfeature", args="wheel_daily_max 8"), session, settings())
    await session.commit()

    assert (await get_features(session)).wheel_daily_max == 8
    assert "wheel_daily_max" in message.answer.await_args.args[0]


async def test_setfeature_command_rejects_bad_value(session):
    message = admin_message()

    await setfeature_cmd(message, CommandObject(command="setfeature", args="wheel_daily_max lots"), session, settings())

    assert (await get_features(session)) == DEFAULT_FEATURES
    assert "❌" in message.answer.await_args.args[0]


async def test_setfeature_command_ignores_non_admins(session):
    message = admin_message(sender_id=1)

    await setfeature_cmd(message, CommandObject(command="setfeature", args="wheel_daily_max 8"), session, settings())

    message.answer.assert_not_awaited()
    assert (await get_features(session)).wheel_daily_max == 5
