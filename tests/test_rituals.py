import pytest
from sqlalchemy import select

from mystic.database.models import RitualLog
from mystic.services.orbs import INSUFFICIENT_ORBS


async def test_rune_ritual_costs_an_orb(session, services, user):
    res = await services.rituals.perform(session, user.id, kind="rune_single", rune_id="ansuz")

    assert res.ok
    assert res.orbs.current == 5
    assert res.xp_awarded == 10

    entry = (await session.execute(select(RitualLog).where(RitualLog.user_id == user.id))).scalar_one()
    assert (entry.type, entry.mode, entry.rune_id, entry.cost_orbs) == ("rune", "single", "ansuz", 1)


async def test_numerology_is_logged_with_number(session, services, user):
    res = await services.rituals.perform(session, user.id, kind="numerology_deep", mode="deep", number=7)

    assert res.xp_awarded == 18
    entry = (await session.execute(select(RitualLog).where(RitualLog.user_id == user.id))).scalar_one()
    assert entry.type == "numerology"
    assert entry.number == 7


async def test_ritual_refused_without_orbs(session, services, user):
    await services.orbs.spend(session, user.id, 6)
    await session.commit()

    res = await services.rituals.perform(session, user.id, kind="rune_single")

    assert not res.ok
    assert res.reason == INSUFFICIENT_ORBS
    await session.refresh(user)
    assert user.xp == 0
    logs = (await session.execute(select(RitualLog).where(RitualLog.user_id == user.id))).scalars().all()
    assert logs == []


async def test_pro_ritual_is_free_with_bonus_xp(session, services, pro_user):
    res = await services.rituals.perform(session, pro_user.id, kind="rune_spread3", mode="spread3")

    assert res.ok
    assert res.orbs.is_pro
    assert res.xp_awarded == 48


async def test_unknown_ritual_kind(session, services, user):
    with pytest.raises(ValueError):
        await services.rituals.perform(session, user.id, kind="tarot_single")
