# mystic/services/progression.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database import transactional
from mystic.database.models import User
from mystic.services.inventory import STREAK_FREEZE, InventoryService
from mystic.utils.dates import utc_today

log = logging.getLogger(__name__)

DAILY_CHECKIN_XP = 15
DAILY_CHECKIN_SOURCE = "daily_checkin"

# base XP per ritual kind
RITUAL_XP = {
    "rune_single": 10,
    "rune_spread2": 18,
    "rune_spread3": 24,
    "numerology_basic": 10,
    "numerology_deep": 18,
}

PRO_XP_MULTIPLIER = 2

ACH_FIRST_LOGIN = "first_login"
ACH_STREAK_3 = "streak_3"
ACH_STREAK_7 = "streak_7"

ACHIEVEMENT_LABELS = {
    ACH_FIRST_LOGIN: "First Login",
    ACH_STREAK_3: "Streak 3",
    ACH_STREAK_7: "Streak 7",
}


def level_from_xp(total_xp: int) -> int:
    # L = floor(0.1 * sqrt(xp)), never below 1
    if total_xp <= 0:
        return 1
    return max(1, math.floor(0.1 * math.sqrt(total_xp)))


def xp_for_next_level(current_level: int) -> int:
    return (current_level + 1) ** 2 * 100


def level_progress(current_xp: int, current_level: int) -> float:
    floor_xp = current_level ** 2 * 100
    span = xp_for_next_level(current_level) - floor_xp
    return min(1.0, max(0.0, (current_xp - floor_xp) / span))


@dataclass(frozen=True, slots=True)
class XpResult:
    xp: int
    level: int
    awarded: int


@dataclass(frozen=True, slots=True)
class CheckinResult:
    already: bool
    streak: int
    awarded_xp: int
    xp: int
    level: int
    new_achievement: str | None = None
    freeze_used: bool = False


class ProgressionService:
    def __init__(self, inventory: InventoryService | None = None) -> None:
        self.inventory = inventory or InventoryService()

    async def _user(self, session: AsyncSession, user_id: int) -> User:
        res = await session.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        user = res.scalar_one_or_none()
        if user is None:
            raise LookupError(f"User not found: {user_id}")
        return user

    async def add_experience(self, session: AsyncSession, user_id: int, amount: int, source: str) -> XpResult:
        """
        Credit XP and recompute the level.
        Pro users earn PRO_XP_MULTIPLIER on everything except the daily check-in.
        """
        async with transactional(session):
            user = await self._user(session, user_id)

            multiplier = 1
            if source != DAILY_CHECKIN_SOURCE and user.pro_entitlement:
                multiplier = PRO_XP_MULTIPLIER
            awarded = int(amount * multiplier)

            await session.execute(
                update(User)
                .where(User.id == user_id)
                .values(xp=User.xp + awarded)
                .execution_options(synchronize_session=False)
            )
            user = await self._user(session, user_id)
            user.level = level_from_xp(int(user.xp))
            await session.flush()

        log.debug("xp user_id=%s source=%s awarded=%s total=%s", user_id, source, awarded, user.xp)
        return XpResult(xp=int(user.xp), level=int(user.level), awarded=awarded)

    async def daily_checkin(self, session: AsyncSession, user_id: int, day_utc: date | None = None) -> CheckinResult:
        day = day_utc or utc_today()

        async with transactional(session):
            user = await self._user(session, user_id)
            if user.last_checkin_day == day:
                return CheckinResult(
                    already=True,
                    streak=int(user.streak),
                    awarded_xp=0,
                    xp=int(user.xp),
                    level=int(user.level),
                )

            last = user.last_checkin_day
            bridge = False
            if last == day - timedelta(days=1):
                new_streak = int(user.streak) + 1
            elif last == day - timedelta(days=2) and user.streak > 0:
                # one missed day can be bridged by a streak freeze
                bridge = (await self.inventory.get(session, user_id)).streak_freeze > 0
                new_streak = int(user.streak) + 1 if bridge else 1
            else:
                new_streak = 1

            achievements = user.achievement_ids
            new_achievement = None
            for ach, reached in (
                (ACH_FIRST_LOGIN, True),
                (ACH_STREAK_3, new_streak >= 3),
                (ACH_STREAK_7, new_streak >= 7),
            ):
                if reached and ach not in achievements:
                    achievements.append(ach)
                    new_achievement = ach

            # guard against a concurrent check-in for the same day
            res = await session.execute(
                update(User)
                .where(
                    User.id == user_id,
                    or_(User.last_checkin_day.is_(None), User.last_checkin_day != day),
                )
                .values(
                    streak=new_streak,
                    last_checkin_day=day,
                    achievements=",".join(achievements),
                )
                .execution_options(synchronize_session=False)
            )
            if not res.rowcount:
                user = await self._user(session, user_id)
                return CheckinResult(
                    already=True,
                    streak=int(user.streak),
                    awarded_xp=0,
                    xp=int(user.xp),
                    level=int(user.level),
                )

            freeze_used = False
            if bridge:
                freeze_used = await self.inventory.consume(session, user_id, STREAK_FREEZE)
                if not freeze_used:
                    new_streak = 1
                    await session.execute(
                        update(User)
                        .where(User.id == user_id)
                        .values(streak=new_streak)
                        .execution_options(synchronize_session=False)
                    )

            xp = await self.add_experience(session, user_id, DAILY_CHECKIN_XP, DAILY_CHECKIN_SOURCE)

        return CheckinResult(
            already=False,
            streak=new_streak,
            awarded_xp=xp.awarded,
            xp=xp.xp,
            level=xp.level,
            new_achievement=new_achievement,
            freeze_used=freeze_used,
        )
