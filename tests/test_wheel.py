import asyncio
import random
from collections import Counter
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import func, select

from mystic.database.models import RitualLog, SpinAttempt, WheelLedger
from mystic.database.repo.features_repo import set_features
from mystic.services import wheel as wheel_module
from mystic.services.wheel import (
    KIND_STREAK_FREEZE,
    MODE_VISION,
    NO_SPINS,
    VISION_DISABLED,
    WHEEL_SEGMENTS,
    WheelSegment,
    WheelService,
    find_segment,
    pick_weighted,
    secure_random_float,
    validate_segments,
)

T = datetime(2024, 1, 1, 12, 0, 0)

# chi-squared critical value, 7 degrees of freedom, alpha = 0.001
CHI2_CRITICAL_DF7 = 24.32


def make_wheel(services, r: float, **overrides) -> WheelService:
    deps = dict(orbs=services.orbs, experience=services.progression, inventory=services.inventory)
    deps.update(overrides)
    return WheelService(rng=lambda: r, **deps)


async def count_logs(session, user_id: int) -> int:
    return await session.scalar(
        select(func.count()).select_from(RitualLog).where(RitualLog.user_id == user_id)
    )


# -------------------------------------------------
# weighted draw
# -------------------------------------------------

@pytest.mark.parametrize(
    "r, expected",
    [
        (0.0, "ORB_1"),
        (0.25, "ORB_1"),
        (0.2501, "ORB_2"),
        (0.5, "XP_25"),
        (0.8, "STREAK_1"),
        (0.95, "XP_75"),
        (0.999999, "STREAK_2"),
    ],
)
def test_pick_weighted_boundaries(r, expected):
    segment, index = pick_weighted(WHEEL_SEGMENTS, r)

    assert segment.id == expected
    assert WHEEL_SEGMENTS[index] is segment


def test_pick_weighted_never_returns_zero_weight():
    segments = (
        WheelSegment("NONE", KIND_STREAK_FREEZE, 1, 0, "never"),
        WheelSegment("ONLY", KIND_STREAK_FREEZE, 1, 1, "always"),
    )
    for r in (0.0, 0.3, 0.999):
        segment, index = pick_weighted(segments, r)
        assert segment.id == "ONLY"
        assert index == 1


def test_draw_distribution_matches_weights():
    rng = random.Random(20240101)
    draws = 100_000

    counts = Counter(pick_weighted(WHEEL_SEGMENTS, rng.random())[0].id for _ in range(draws))

    total_weight = sum(s.weight for s in WHEEL_SEGMENTS)
    chi2 = 0.0
    for seg in WHEEL_SEGMENTS:
        expected = draws * seg.weight / total_weight
        chi2 += (counts[seg.id] - expected) ** 2 / expected

    assert chi2 < CHI2_CRITICAL_DF7


def test_segment_table_totals_100():
    assert sum(s.weight for s in WHEEL_SEGMENTS) == 100
    assert len({s.id for s in WHEEL_SEGMENTS}) == len(WHEEL_SEGMENTS)


@pytest.mark.parametrize(
    "segments",
    [
        (),
        (WheelSegment("A", KIND_STREAK_FREEZE, 1, 0, "a"),),
        (WheelSegment("A", KIND_STREAK_FREEZE, 1, -1, "a"), WheelSegment("B", KIND_STREAK_FREEZE, 1, 2, "b")),
        (WheelSegment("A", "GOLD", 1, 1, "a"),),
    ],
)
def test_validate_segments_rejects_bad_tables(segments):
    with pytest.raises(ValueError):
        validate_segments(segments)


def test_find_segment():
    segment, index = find_segment(WHEEL_SEGMENTS, "XP_50")
    assert (segment.value, index) == (50, 3)

    with pytest.raises(LookupError):
        find_segment(WHEEL_SEGMENTS, "JACKPOT")


# -------------------------------------------------
# daily ledger
# -------------------------------------------------

async def test_ledger_rolls_over_on_new_day(session, services, user):
    ledger = await services.wheel.get_or_create_ledger(session, user.id, date(2024, 1, 1))
    ledger.spins_today = 3
    await session.commit()

    status = await services.wheel.spins_remaining(session, user.id, date(2024, 1, 2))

    assert status.used == 0
    assert status.remaining == status.max
    await session.refresh(ledger)
    assert ledger.date_key == "2024-01-02"


async def test_spins_status_defaults(session, services, user):
    status = await services.wheel.spins_remaining(session, user.id, T.date())

    assert status.used == 0
    assert status.free_limit == 1
    assert status.max == 5
    assert status.remaining == 5
    assert not status.is_pro


async def test_pro_user_gets_larger_free_limit(session, services, pro_user):
    status = await services.wheel.spins_remaining(session, pro_user.id, T.date())

    assert status.free_limit == 2
    assert status.is_pro


async def test_spin_consumes_one_slot(session, services, user):
    wheel = make_wheel(services, 0.5)

    res = await wheel.spin(session, user.id, now=T)
    await session.commit()

    assert res.ok
    assert res.segment.id == "XP_25"
    assert res.spins_remaining_after == 4

    status = await wheel.spins_remaining(session, user.id, T.date())
    assert (status.used, status.remaining, status.free_limit) == (1, 4, 1)
    assert await wheel.can_spin(session, user.id, T.date())


async def test_daily_cap_is_enforced(session, services, user):
    await set_features(session, wheel_daily_max=5)
    await session.commit()
    wheel = make_wheel(services, 0.5)

    for _ in range(5):
        assert (await wheel.spin(session, user.id, now=T)).ok
    await session.commit()

    res = await wheel.spin(session, user.id, now=T)

    assert not res.ok
    assert res.reason == NO_SPINS
    assert res.spins_remaining_after == 0
    assert not await wheel.can_spin(session, user.id, T.date())

    ledger = await wheel.get_or_create_ledger(session, user.id, T.date())
    await session.refresh(ledger)
    assert ledger.spins_today == 5
    assert await count_logs(session, user.id) == 5

    # next UTC day starts fresh
    assert (await wheel.spin(session, user.id, now=T + timedelta(days=1))).ok


# -------------------------------------------------
# rewards
# -------------------------------------------------

async def test_orb_reward_is_credited(session, services, user):
    await services.orbs.spend(session, user.id, 1)
    await session.commit()

    res = await make_wheel(services, 0.0).spin(session, user.id, now=T)

    assert res.segment.id == "ORB_1"
    assert res.summary.orbs_granted == 1
    row = await services.orbs.get_or_create(session, user.id)
    await session.refresh(row)
    assert row.current == 6


async def test_xp_reward_is_credited(session, services, user):
    res = await make_wheel(services, 0.5).spin(session, user.id, now=T)

    assert res.summary.xp_granted == 25
    await session.refresh(user)
    assert user.xp == 25


async def test_streak_freeze_reward_is_credited(session, services, user):
    res = await make_wheel(services, 0.8).spin(session, user.id, now=T)

    assert res.segment.id == "STREAK_1"
    assert res.summary.streak_freeze_granted == 1
    assert (await services.inventory.get(session, user.id)).streak_freeze == 1


async def test_spin_writes_ritual_log(session, services, user):
    await make_wheel(services, 0.8).spin(session, user.id, MODE_VISION, now=T)

    entry = (await session.execute(select(RitualLog).where(RitualLog.user_id == user.id))).scalar_one()
    assert entry.type == "wheel"
    assert entry.mode == MODE_VISION
    assert entry.wheel_kind == KIND_STREAK_FREEZE
    assert entry.wheel_value == 1
    assert entry.cost_orbs == 0


async def test_vision_spin_refused_when_disabled(session, services, user):
    await set_features(session, wheel_allow_vision_extra=False)
    await session.commit()
    wheel = make_wheel(services, 0.5)

    res = await wheel.spin(session, user.id, MODE_VISION, now=T)

    assert not res.ok
    assert res.reason == VISION_DISABLED
    assert (await wheel.spin(session, user.id, now=T)).ok


async def test_unknown_mode_is_rejected(session, services, user):
    with pytest.raises(ValueError):
        await services.wheel.spin(session, user.id, "bonus", now=T)


# -------------------------------------------------
# atomicity + idempotency
# -------------------------------------------------

class FailingLedger:
    async def add_experience(self, session, user_id, amount, source):
        raise RuntimeError("xp store down")


async def test_failed_reward_rolls_back_the_spin(session, services, user):
    wheel = make_wheel(services, 0.5, experience=FailingLedger())

    with pytest.raises(RuntimeError):
        await wheel.spin(session, user.id, now=T, attempt_id="a-1")

    status = await wheel.spins_remaining(session, user.id, T.date())
    assert status.used == 0
    assert await count_logs(session, user.id) == 0
    attempts = await session.scalar(select(func.count()).select_from(SpinAttempt))
    assert attempts == 0


async def test_repeated_attempt_id_replays_result(session, services, user):
    wheel = make_wheel(services, 0.5)

    first = await wheel.spin(session, user.id, now=T, attempt_id="tg:42")
    await session.commit()
    again = await wheel.spin(session, user.id, now=T, attempt_id="tg:42")

    assert first.ok and again.ok
    assert not first.replayed
    assert again.replayed
    assert again.segment == first.segment
    assert again.summary == first.summary
    assert again.spins_remaining_after == first.spins_remaining_after

    status = await wheel.spins_remaining(session, user.id, T.date())
    assert status.used == 1
    await session.refresh(user)
    assert user.xp == 25


async def test_purge_attempts_drops_old_records(session, services, user):
    wheel = make_wheel(services, 0.5)
    await wheel.spin(session, user.id, now=T, attempt_id="old")
    await wheel.spin(session, user.id, now=T + timedelta(days=3), attempt_id="new")
    await session.commit()

    removed = await wheel.purge_attempts(session, older_than=T + timedelta(days=1))
    await session.commit()

    assert removed == 1
    left = (await session.execute(select(SpinAttempt.attempt_id))).scalars().all()
    assert left == ["new"]


async def test_ledger_is_one_row_per_user(session, services, user):
    await services.wheel.get_or_create_ledger(session, user.id, T.date())
    await services.wheel.get_or_create_ledger(session, user.id, T.date())
    await session.commit()

    rows = await session.scalar(
        select(func.count()).select_from(WheelLedger).where(WheelLedger.user_id == user.id)
    )
    assert rows == 1


async def test_orb_reward_reports_amount_after_clamp(session, services, user):
    await services.orbs.spend(session, user.id, 1)
    await session.commit()

    res = await make_wheel(services, 0.85).spin(session, user.id, now=T, attempt_id="clamp")

    assert res.segment.id == "ORB_3"
    assert res.summary.orbs_granted == 1
    stored = await session.scalar(select(SpinAttempt.granted).where(SpinAttempt.attempt_id == "clamp"))
    assert stored == 1


async def test_xp_reward_reports_pro_multiplier(session, services, pro_user):
    res = await make_wheel(services, 0.5).spin(session, pro_user.id, now=T)

    assert res.segment.id == "XP_25"
    assert res.summary.xp_granted == 50
    entry = (await session.execute(select(RitualLog).where(RitualLog.user_id == pro_user.id))).scalar_one()
    assert entry.xp_awarded == 50


async def test_concurrent_spins_for_last_slot(db, session, services, user):
    await set_features(session, wheel_daily_max=1)
    await services.wheel.get_or_create_ledger(session, user.id, T.date())
    await session.commit()
    wheel = make_wheel(services, 0.5)

    async def attempt():
        async with db.session() as s:
            res = await wheel.spin(s, user.id, now=T)
            await s.commit()
            return res

    results = await asyncio.gather(attempt(), attempt())

    assert sorted(r.ok for r in results) == [False, True]
    assert next(r for r in results if not r.ok).reason == NO_SPINS

    async with db.session() as s:
        used = await s.scalar(select(WheelLedger.spins_today).where(WheelLedger.user_id == user.id))
        logs = await count_logs(s, user.id)
    assert used == 1
    assert logs == 1


def test_secure_random_float_in_unit_interval():
    for _ in range(100):
        assert 0.0 <= secure_random_float() < 1.0


def test_secure_random_float_falls_back_without_os_entropy(monkeypatch):
    class NoEntropy:
        def random(self):
            raise NotImplementedError

    monkeypatch.setattr(wheel_module, "_system_random", NoEntropy())
    monkeypatch.setattr(wheel_module.random, "random", lambda: 0.25)

    assert secure_random_float() == 0.25
