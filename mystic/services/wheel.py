# mystic/services/wheel.py
from __future__ import annotations

import logging
import random
import secrets
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Protocol, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database import transactional
from mystic.database.models import SpinAttempt, WheelLedger
from mystic.database.repo.features_repo import get_features
from mystic.database.repo.ritual_log_repo import append_ritual_log
from mystic.services.inventory import STREAK_FREEZE
from mystic.utils.dates import date_key, to_naive_utc, utc_now, utc_today

log = logging.getLogger(__name__)

KIND_ORB = "ORB"
KIND_XP = "XP"
KIND_STREAK_FREEZE = "STREAK_FREEZE"

MODE_DAILY = "daily"
MODE_VISION = "vision"
SPIN_MODES = (MODE_DAILY, MODE_VISION)

NO_SPINS = "no_spins"
VISION_DISABLED = "vision_disabled"

XP_SOURCE = "wheel"


# -------------------------------------------------
# Collaborators (injected)
# -------------------------------------------------

class OrbGranter(Protocol):
    async def credit(self, session: AsyncSession, user_id: int, n: int = 1) -> tuple[Any, int]: ...

    async def is_pro(self, session: AsyncSession, user_id: int) -> bool: ...


class ExperienceLedger(Protocol):
    async def add_experience(self, session: AsyncSession, user_id: int, amount: int, source: str): ...


class InventoryStore(Protocol):
    async def increment(self, session: AsyncSession, user_id: int, item: str, amount: int) -> int: ...


# -------------------------------------------------
# Segments + weighted draw
# -------------------------------------------------

@dataclass(frozen=True, slots=True)
class WheelSegment:
    id: str
    kind: str
    value: int
    weight: float
    label: str


WHEEL_SEGMENTS: tuple[WheelSegment, ...] = (
    WheelSegment("ORB_1", KIND_ORB, 1, 25, "+1 Orb"),
    WheelSegment("ORB_2", KIND_ORB, 2, 15, "+2 Orbs"),
    WheelSegment("XP_25", KIND_XP, 25, 22, "+25 XP"),
    WheelSegment("XP_50", KIND_XP, 50, 12, "+50 XP"),
    WheelSegment("STREAK_1", KIND_STREAK_FREEZE, 1, 8, "Streak Freeze"),
    WheelSegment("ORB_3", KIND_ORB, 3, 8, "+3 Orbs"),
    WheelSegment("XP_75", KIND_XP, 75, 6, "+75 XP"),
    WheelSegment("STREAK_2", KIND_STREAK_FREEZE, 2, 4, "Streak Freeze x2"),
)

_system_random = secrets.SystemRandom()


def secure_random_float() -> float:
    """
    Uniform float in [0, 1) from the OS entropy source.
    """
    try:
        return _system_random.random()
    except NotImplementedError:
        log.warning("os.urandom unavailable, falling back to pseudo-random draw")
        return random.random()


def validate_segments(segments: Sequence[WheelSegment]) -> None:
    if not segments:
        raise ValueError("wheel needs at least one segment")
    if any(s.weight < 0 for s in segments):
        raise ValueError("segment weights must be non-negative")
    if sum(s.weight for s in segments) <= 0:
        raise ValueError("segment weights must not all be zero")
    if any(s.kind not in (KIND_ORB, KIND_XP, KIND_STREAK_FREEZE) for s in segments):
        raise ValueError("unknown segment kind")


def pick_weighted(segments: Sequence[WheelSegment], r: float) -> tuple[WheelSegment, int]:
    """
    P(segment) == weight / total for r uniform in [0, 1).
    """
    total = sum(s.weight for s in segments)
    target = r * total

    acc = 0.0
    for i, seg in enumerate(segments):
        acc += seg.weight
        if seg.weight > 0 and target <= acc:
            return seg, i

    # float rounding at the very top of the range
    last = len(segments) - 1
    return segments[last], last


def find_segment(segments: Sequence[WheelSegment], segment_id: str) -> tuple[WheelSegment, int]:
    for i, seg in enumerate(segments):
        if seg.id == segment_id:
            return seg, i
    raise LookupError(f"Unknown wheel segment: {segment_id}")


# -------------------------------------------------
# Results
# -------------------------------------------------

@dataclass(frozen=True, slots=True)
class WheelConfig:
    daily_free: int
    daily_free_pro: int
    allow_vision_extra: bool
    daily_max: int


@dataclass(frozen=True, slots=True)
class SpinsStatus:
    used: int
    free_limit: int
    max: int
    remaining: int
    is_pro: bool = False


@dataclass(frozen=True, slots=True)
class RewardSummary:
    orbs_granted: int = 0
    xp_granted: int = 0
    streak_freeze_granted: int = 0


@dataclass(frozen=True, slots=True)
class SpinResult:
    ok: bool
    reason: str | None = None
    segment: WheelSegment | None = None
    index: int | None = None
    summary: RewardSummary = field(default_factory=RewardSummary)
    spins_remaining_after: int = 0
    replayed: bool = False


def _summary_for(segment: WheelSegment, granted: int) -> RewardSummary:
    if segment.kind == KIND_ORB:
        return RewardSummary(orbs_granted=granted)
    if segment.kind == KIND_XP:
        return RewardSummary(xp_granted=granted)
    return RewardSummary(streak_freeze_granted=granted)


# -------------------------------------------------
# Service
# -------------------------------------------------

class WheelService:
    """
    Daily-limited weighted reward wheel.

    A spin (slot claim, reward, ritual log, attempt record) runs in one
    transaction: either all of it lands or none of it does.
    """

    def __init__(
        self,
        *,
        orbs: OrbGranter,
        experience: ExperienceLedger,
        inventory: InventoryStore,
        segments: Sequence[WheelSegment] = WHEEL_SEGMENTS,
        rng: Callable[[], float] = secure_random_float,
    ) -> None:
        validate_segments(segments)
        self.orbs = orbs
        self.experience = experience
        self.inventory = inventory
        self.segments = tuple(segments)
        self.rng = rng

    def select_reward(self) -> tuple[WheelSegment, int]:
        return pick_weighted(self.segments, self.rng())

    async def get_config(self, session: AsyncSession) -> WheelConfig:
        f = await get_features(session)
        return WheelConfig(
            daily_free=f.wheel_daily_free,
            daily_free_pro=f.wheel_daily_free_pro,
            allow_vision_extra=f.wheel_allow_vision_extra,
            daily_max=f.wheel_daily_max,
        )

    async def get_or_create_ledger(
        self,
        session: AsyncSession,
        user_id: int,
        day_utc: date | None = None,
    ) -> WheelLedger:
        today = date_key(day_utc or utc_today())

        query = select(WheelLedger).where(WheelLedger.user_id == user_id)
        ledger = (await session.execute(query)).scalar_one_or_none()

        if ledger is None:
            ledger = WheelLedger(user_id=user_id, date_key=today, spins_today=0)
            try:
                async with session.begin_nested():
                    session.add(ledger)
                    await session.flush()
                return ledger
            except IntegrityError:
                # created by a concurrent request
                ledger = (await session.execute(query)).scalar_one()

        if ledger.date_key != today:
            # lazy rollover: first touch of a new UTC day resets the counter
            async with transactional(session):
                ledger.date_key = today
                ledger.spins_today = 0
                await session.flush()
            log.debug("wheel ledger rolled over user_id=%s day=%s", user_id, today)

        return ledger

    async def spins_remaining(
        self,
        session: AsyncSession,
        user_id: int,
        day_utc: date | None = None,
    ) -> SpinsStatus:
        cfg = await self.get_config(session)
        ledger = await self.get_or_create_ledger(session, user_id, day_utc)
        await session.refresh(ledger)
        pro = await self.orbs.is_pro(session, user_id)

        used = int(ledger.spins_today)
        return SpinsStatus(
            used=used,
            # informational: eligibility is governed by `max` only
            free_limit=cfg.daily_free_pro if pro else cfg.daily_free,
            max=cfg.daily_max,
            remaining=max(0, cfg.daily_max - used),
            is_pro=pro,
        )

    async def can_spin(self, session: AsyncSession, user_id: int, day_utc: date | None = None) -> bool:
        status = await self.spins_remaining(session, user_id, day_utc)
        return status.remaining > 0

    async def replay_attempt(self, session: AsyncSession, user_id: int, attempt_id: str) -> SpinResult | None:
        """
        Stored outcome of an earlier spin with this attempt id, or None.
        """
        res = await session.execute(
            select(SpinAttempt).where(
                SpinAttempt.user_id == user_id,
                SpinAttempt.attempt_id == attempt_id,
            )
        )
        attempt = res.scalar_one_or_none()
        if attempt is None:
            return None

        segment, index = find_segment(self.segments, attempt.segment_id)
        return SpinResult(
            ok=True,
            segment=segment,
            index=index,
            summary=_summary_for(segment, int(attempt.granted)),
            spins_remaining_after=int(attempt.spins_remaining_after),
            replayed=True,
        )

    async def _apply_reward(self, session: AsyncSession, user_id: int, segment: WheelSegment) -> int:
        # amount that actually landed: orbs clamp at max, Pro XP is multiplied
        if segment.kind == KIND_ORB:
            _, credited = await self.orbs.credit(session, user_id, segment.value)
            return credited
        if segment.kind == KIND_XP:
            xp = await self.experience.add_experience(session, user_id, segment.value, XP_SOURCE)
            return int(xp.awarded)
        await self.inventory.increment(session, user_id, STREAK_FREEZE, segment.value)
        return segment.value

    async def spin(
        self,
        session: AsyncSession,
        user_id: int,
        mode: str = MODE_DAILY,
        *,
        day_utc: date | None = None,
        now: datetime | None = None,
        attempt_id: str | None = None,
    ) -> SpinResult:
        if mode not in SPIN_MODES:
            raise ValueError(f"Unknown spin mode: {mode!r}")

        now = to_naive_utc(now) if now else utc_now()
        day = day_utc or now.date()

        if attempt_id:
            replay = await self.replay_attempt(session, user_id, attempt_id)
            if replay is not None:
                log.info("wheel spin replayed user_id=%s attempt=%s", user_id, attempt_id)
                return replay

        cfg = await self.get_config(session)
        if mode == MODE_VISION and not cfg.allow_vision_extra:
            return SpinResult(ok=False, reason=VISION_DISABLED)

        status = await self.spins_remaining(session, user_id, day)
        if status.remaining <= 0:
            return SpinResult(ok=False, reason=NO_SPINS, spins_remaining_after=0)

        ledger = await self.get_or_create_ledger(session, user_id, day)

        try:
            result = await self._spin_once(session, user_id, mode, ledger, cfg, day, now, attempt_id)
        except IntegrityError:
            # same attempt id committed by a concurrent request
            replay = await self.replay_attempt(session, user_id, attempt_id) if attempt_id else None
            if replay is None:
                raise
            return replay

        if result.ok:
            log.info(
                "wheel spin user_id=%s mode=%s segment=%s remaining=%s",
                user_id, mode, result.segment.id, result.spins_remaining_after,
            )
        return result

    async def _spin_once(
        self,
        session: AsyncSession,
        user_id: int,
        mode: str,
        ledger: WheelLedger,
        cfg: WheelConfig,
        day: date,
        now: datetime,
        attempt_id: str | None,
    ) -> SpinResult:
        async with transactional(session):
            # claim a slot; fails if a concurrent spin took the last one
            res = await session.execute(
                update(WheelLedger)
                .where(
                    WheelLedger.id == ledger.id,
                    WheelLedger.date_key == date_key(day),
                    WheelLedger.spins_today < cfg.daily_max,
                )
                .values(spins_today=WheelLedger.spins_today + 1, last_spin_at=now)
                .execution_options(synchronize_session=False)
            )
            if not res.rowcount:
                return SpinResult(ok=False, reason=NO_SPINS, spins_remaining_after=0)

            segment, index = self.select_reward()
            granted = await self._apply_reward(session, user_id, segment)

            await append_ritual_log(
                session,
                user_id=user_id,
                type="wheel",
                mode=mode,
                wheel_kind=segment.kind,
                wheel_value=segment.value,
                cost_orbs=0,
                xp_awarded=granted if segment.kind == KIND_XP else 0,
                created_at=now,
            )

            await session.refresh(ledger)
            remaining = max(0, cfg.daily_max - int(ledger.spins_today))

            if attempt_id:
                session.add(
                    SpinAttempt(
                        user_id=user_id,
                        attempt_id=attempt_id,
                        mode=mode,
                        segment_id=segment.id,
                        segment_index=index,
                        granted=granted,
                        spins_remaining_after=remaining,
                        created_at=now,
                    )
                )
                await session.flush()

        return SpinResult(
            ok=True,
            segment=segment,
            index=index,
            summary=_summary_for(segment, granted),
            spins_remaining_after=remaining,
        )

    async def purge_attempts(self, session: AsyncSession, older_than: datetime) -> int:
        async with transactional(session):
            res = await session.execute(
                delete(SpinAttempt)
                .where(SpinAttempt.created_at < to_naive_utc(older_than))
                .execution_options(synchronize_session=False)
            )
        return int(res.rowcount or 0)
