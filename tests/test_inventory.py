import pytest

from mystic.services.inventory import STREAK_FREEZE


async def test_empty_inventory(session, services, user):
    assert (await services.inventory.get(session, user.id)).streak_freeze == 0


async def test_increment_and_consume(session, services, user):
    assert await services.inventory.increment(session, user.id, STREAK_FREEZE, 2) == 2
    assert await services.inventory.increment(session, user.id, STREAK_FREEZE, 1) == 3

    assert await services.inventory.consume(session, user.id, STREAK_FREEZE)
    assert (await services.inventory.get(session, user.id)).streak_freeze == 2


async def test_consume_without_stock(session, services, user):
    assert not await services.inventory.consume(session, user.id, STREAK_FREEZE)


async def test_unknown_item(session, services, user):
    with pytest.raises(ValueError):
        await services.inventory.increment(session, user.id, "mana_potion", 1)
