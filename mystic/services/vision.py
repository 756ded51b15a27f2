# mystic/services/vision.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import case, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database import transactional
from mystic.database.models import User
from mystic.database.repo.features_repo import get_features
from mystic.services.orb_math import seconds_between
from mystic.services.orbs import OrbsService, OrbsSnapshot
from mystic.services.wheel import MODE_VISION, SpinResult, WheelService
from mystic.utils.dates import to_naive_utc, utc_now

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VisionEligibility:
    enabled: bool
    reason: str  # ok | disabled | pro | cooldown | daily-limit | not-found
    cooldown_eta_sec: int = 0
    remaining_today: int = 0


@dataclass(frozen=True, slots=True)
class VisionReward:
    ok: bool
    reason: str
    orbs_granted: int = 0
    record: OrbsSnapshot | None = None


class _Rollback(Exception):
    def __init__(self, result: SpinResult) -> None:
        super().__init__(result.reason)
        self.result = result


class VisionService:
    """
    Watch-to-earn: a completed rewarded ad ("vision") credits one orb,
    subject to a cooldown and a daily cap. Pro users never need it.
    """

    def __init__(self, orbs: OrbsService, wheel: WheelService) -> None:
        self.orbs = orbs
        self.wheel = wheel

    async def check_eligibility(
        self,
        session: AsyncSession,
        user_id: int,
        now: datetime | None = None,
    ) -> VisionEligibility:
        now = to_naive_utc(now) if now else utc_now()

        res = await session.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        user = res.scalar_one_or_none()
        if user is None:
            return VisionEligibility(enabled=False, reason="not-found")

        f = await get_features(session)
        if not f.watch_to_earn_enabled:
            return VisionEligibility(enabled=False, reason="disabled")

        if user.pro_entitlement:
            return VisionEligibility(enabled=False, reason="pro")

        if user.last_watch_at is not None:
            cooldown = f.watch_cooldown_min * 60
            elapsed = seconds_between(user.last_watch_at, now)
            if elapsed < cooldown:
                return VisionEligibility(
                    enabled=False,
                    reason="cooldown",
                    cooldown_eta_sec=cooldown - elapsed,
                )

        watched = int(user.watches_today) if user.watch_day == now.date() else 0
        if watched >= f.watch_daily_limit:
            return VisionEligibility(enabled=False, reason="daily-limit", remaining_today=0)

        return VisionEligibility(enabled=True, reason="ok", remaining_today=f.watch_daily_limit - watched)

    async def _stamp_watch(self, session: AsyncSession, user_id: int, now: datetime) -> bool:
        # loses against a concurrent completion for the same user
        user = await session.get(User, user_id)
        last_watch_at = user.last_watch_at
        today = now.date()

        res = await session.execute(
            update(User)
            .where(
                User.id == user_id,
                or_(User.last_watch_at.is_(None), User.last_watch_at == last_watch_at),
            )
            .values(
                last_watch_at=now,
                watch_day=today,
                watches_today=case((User.watch_day == today, User.watches_today + 1), else_=1),
            )
            .execution_options(synchronize_session=False)
        )
        return bool(res.rowcount)

    async def complete_watch(
        self,
        session: AsyncSession,
        user_id: int,
        now: datetime | None = None,
    ) -> VisionReward:
        now = to_naive_utc(now) if now else utc_now()

        eligibility = await self.check_eligibility(session, user_id, now)
        if not eligibility.enabled:
            return VisionReward(ok=False, reason=eligibility.reason)

        async with transactional(session):
            if not await self._stamp_watch(session, user_id, now):
                return VisionReward(ok=False, reason="cooldown")
            record, granted = await self.orbs.credit(session, user_id, 1)

        log.info("vision completed user_id=%s orbs_granted=%s", user_id, granted)
        return VisionReward(ok=True, reason="ok", orbs_granted=granted, record=record)

    async def vision_spin(
        self,
        session: AsyncSession,
        user_id: int,
        *,
        now: datetime | None = None,
        attempt_id: str | None = None,
    ) -> SpinResult:
        """
        Bonus wheel spin unlocked by watching a vision.

        The watch counts against the cooldown and the daily watch limit like
        any other. Pro users spin without one. A refused spin leaves no watch
        stamped.
        """
        now = to_naive_utc(now) if now else utc_now()

        if attempt_id:
            replay = await self.wheel.replay_attempt(session, user_id, attempt_id)
            if replay is not None:
                return replay

        eligibility = await self.check_eligibility(session, user_id, now)
        if not eligibility.enabled and eligibility.reason != "pro":
            return SpinResult(ok=False, reason=eligibility.reason)

        try:
            async with transactional(session):
                if eligibility.enabled and not await self._stamp_watch(session, user_id, now):
                    raise _Rollback(SpinResult(ok=False, reason="cooldown"))

                res = await self.wheel.spin(session, user_id, MODE_VISION, now=now, attempt_id=attempt_id)
                if not res.ok or res.replayed:
                    raise _Rollback(res)
        except _Rollback as undo:
            return undo.result

        log.info("vision spin user_id=%s segment=%s", user_id, res.segment.id)
        return res
