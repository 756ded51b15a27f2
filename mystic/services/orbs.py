# mystic/services/orbs.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database import transactional
from mystic.database.models import OrbsRecord, User
from mystic.services import orb_math
from mystic.utils.dates import to_naive_utc, utc_now

log = logging.getLogger(__name__)

INSUFFICIENT_ORBS = "insufficient_orbs"


@dataclass(frozen=True, slots=True)
class OrbEconomyConfig:
    free_max: int = 6
    free_regen_per_hour: float = 1
    regen_interval_sec: int = 3600  # one regeneration tick
    pro_max: int = 9999             # "unlimited"
    pro_regen_per_hour: float = 9999

    def __post_init__(self) -> None:
        if self.regen_interval_sec <= 0:
            raise ValueError("regen_interval_sec must be positive")
        if self.free_max < 0 or self.pro_max < 0:
            raise ValueError("orb capacities must be non-negative")
        if self.free_regen_per_hour < 0 or self.pro_regen_per_hour < 0:
            raise ValueError("regen rates must be non-negative")


@dataclass(frozen=True, slots=True)
class OrbsSnapshot:
    current: int
    max: int
    regen_rate_per_hour: float
    last_regen_at: datetime
    is_pro: bool = False

    @classmethod
    def from_row(cls, row: OrbsRecord) -> "OrbsSnapshot":
        return cls(
            current=int(row.current),
            max=int(row.max),
            regen_rate_per_hour=row.regen_rate_per_hour,
            last_regen_at=row.last_regen_at,
        )


@dataclass(frozen=True, slots=True)
class RegenResult:
    record: OrbsSnapshot
    granted: int
    next_eta_seconds: int


@dataclass(frozen=True, slots=True)
class SpendResult:
    ok: bool
    record: OrbsSnapshot
    spent: int = 0
    reason: str | None = None


class OrbsService:
    """
    Per-user orb balance: lazy regeneration, atomic spend and grant.

    Writes are single conditional UPDATEs, so two requests for the same
    user can never both spend the last orb or both apply the same
    regeneration interval.
    """

    def __init__(self, config: OrbEconomyConfig | None = None) -> None:
        self.config = config or OrbEconomyConfig()

    def _pro_snapshot(self, now: datetime | None = None) -> OrbsSnapshot:
        return OrbsSnapshot(
            current=self.config.pro_max,
            max=self.config.pro_max,
            regen_rate_per_hour=self.config.pro_regen_per_hour,
            last_regen_at=now or utc_now(),
            is_pro=True,
        )

    async def _load(self, session: AsyncSession, user_id: int) -> OrbsRecord | None:
        res = await session.execute(select(OrbsRecord).where(OrbsRecord.user_id == user_id))
        return res.scalar_one_or_none()

    async def get_or_create(self, session: AsyncSession, user_id: int, now: datetime | None = None) -> OrbsRecord:
        row = await self._load(session, user_id)
        if row is not None:
            return row

        row = OrbsRecord(
            user_id=user_id,
            current=self.config.free_max,
            max=self.config.free_max,
            regen_rate_per_hour=self.config.free_regen_per_hour,
            last_regen_at=to_naive_utc(now) if now else utc_now(),
        )
        try:
            async with session.begin_nested():
                session.add(row)
                await session.flush()
        except IntegrityError:
            # created by a concurrent request
            row = await self._load(session, user_id)
            if row is None:
                raise
        return row

    async def is_pro(self, session: AsyncSession, user_id: int) -> bool:
        try:
            res = await session.execute(select(User.pro_entitlement).where(User.id == user_id))
            flag = res.scalar_one_or_none()
        except SQLAlchemyError:
            log.warning("pro lookup failed for user_id=%s, treating as free tier", user_id, exc_info=True)
            return False
        return flag is True

    async def maybe_regen(self, session: AsyncSession, user_id: int, now: datetime | None = None) -> RegenResult:
        now = to_naive_utc(now) if now else utc_now()
        interval = self.config.regen_interval_sec

        row = await self.get_or_create(session, user_id, now=now)
        if await self.is_pro(session, user_id):
            return RegenResult(record=self._pro_snapshot(now), granted=0, next_eta_seconds=0)

        checkpoint = row.last_regen_at
        rate = row.regen_rate_per_hour
        intervals = orb_math.regen_eligible(orb_math.seconds_between(checkpoint, now), interval)
        used, units = orb_math.regen_step(intervals, rate)

        granted = 0
        if used > 0:
            _, granted = orb_math.apply_regen(int(row.current), int(row.max), units)
            # advance by the intervals turned into orbs only: the rest keeps counting
            new_checkpoint = checkpoint + timedelta(seconds=used * interval)
            raised = OrbsRecord.current + granted

            async with transactional(session):
                res = await session.execute(
                    update(OrbsRecord)
                    .where(OrbsRecord.id == row.id, OrbsRecord.last_regen_at == checkpoint)
                    .values(
                        current=case((raised > OrbsRecord.max, OrbsRecord.max), else_=raised),
                        last_regen_at=new_checkpoint,
                    )
                    .execution_options(synchronize_session=False)
                )
            if not res.rowcount:
                # another request moved the checkpoint first
                granted = 0
            await session.refresh(row)

            if granted:
                log.debug("regen user_id=%s intervals=%s granted=%s", user_id, used, granted)

        snap = OrbsSnapshot.from_row(row)
        eta = orb_math.next_regen_eta(
            snap.current,
            snap.max,
            orb_math.seconds_between(snap.last_regen_at, now),
            interval * orb_math.regen_period(snap.regen_rate_per_hour),
        )
        return RegenResult(record=snap, granted=granted, next_eta_seconds=eta)

    @staticmethod
    def can_spend(record: OrbsSnapshot | OrbsRecord, n: int = 1, is_pro_user: bool = False) -> bool:
        return orb_math.can_spend(int(record.current), n, is_pro_user)

    async def spend(self, session: AsyncSession, user_id: int, n: int = 1) -> SpendResult:
        if n <= 0:
            raise ValueError("spend amount must be positive")

        if await self.is_pro(session, user_id):
            return SpendResult(ok=True, record=self._pro_snapshot(), spent=0)

        row = await self.get_or_create(session, user_id)

        # check-and-decrement in one statement (compare-and-swap)
        async with transactional(session):
            res = await session.execute(
                update(OrbsRecord)
                .where(OrbsRecord.id == row.id, OrbsRecord.current >= n)
                .values(current=OrbsRecord.current - n)
                .execution_options(synchronize_session=False)
            )
        await session.refresh(row)

        if not res.rowcount:
            log.info("spend rejected user_id=%s n=%s current=%s", user_id, n, row.current)
            return SpendResult(ok=False, record=OrbsSnapshot.from_row(row), reason=INSUFFICIENT_ORBS)

        return SpendResult(ok=True, record=OrbsSnapshot.from_row(row), spent=n)

    async def credit(self, session: AsyncSession, user_id: int, n: int = 1) -> tuple[OrbsSnapshot, int]:
        """
        Credit `n` orbs clamped to max. Returns the new balance and the number
        of orbs that actually landed (0 when full, and for Pro users).
        No write at all when already full.
        """
        if n <= 0:
            raise ValueError("grant amount must be positive")

        if await self.is_pro(session, user_id):
            return self._pro_snapshot(), 0

        row = await self.get_or_create(session, user_id)
        while True:
            await session.refresh(row)
            before = int(row.current)
            if before >= row.max:
                return OrbsSnapshot.from_row(row), 0

            after = min(before + n, int(row.max))
            async with transactional(session):
                res = await session.execute(
                    update(OrbsRecord)
                    .where(OrbsRecord.id == row.id, OrbsRecord.current == before)
                    .values(current=after)
                    .execution_options(synchronize_session=False)
                )
            if res.rowcount:
                await session.refresh(row)
                return OrbsSnapshot.from_row(row), after - before
            # balance changed by a concurrent request: read it again

    async def grant(self, session: AsyncSession, user_id: int, n: int = 1) -> OrbsSnapshot:
        snap, _ = await self.credit(session, user_id, n)
        return snap

    async def grant_one(self, session: AsyncSession, user_id: int) -> OrbsSnapshot:
        return await self.grant(session, user_id, 1)
