# mystic/database/repo/ritual_log_repo.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database.models import RitualLog
from mystic.utils.dates import utc_now


async def append_ritual_log(
    session: AsyncSession,
    *,
    user_id: int,
    type: str,
    mode: str,
    cost_orbs: int = 0,
    xp_awarded: int = 0,
    wheel_kind: str | None = None,
    wheel_value: int | None = None,
    rune_id: str | None = None,
    number: int | None = None,
    created_at: datetime | None = None,
) -> RitualLog:
    entry = RitualLog(
        user_id=user_id,
        type=type,
        mode=mode,
        cost_orbs=cost_orbs,
        xp_awarded=xp_awarded,
        wheel_kind=wheel_kind,
        wheel_value=wheel_value,
        rune_id=rune_id,
        number=number,
        created_at=created_at or utc_now(),
    )
    session.add(entry)
    await session.flush()
    return entry
