# mystic/services/rituals.py
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database import transactional
from mystic.database.repo.ritual_log_repo import append_ritual_log
from mystic.services.orbs import OrbsService, OrbsSnapshot
from mystic.services.progression import RITUAL_XP, ProgressionService


@dataclass(frozen=True, slots=True)
class RitualResult:
    ok: bool
    reason: str | None = None
    orbs: OrbsSnapshot | None = None
    xp_awarded: int = 0
    level: int | None = None


class RitualService:
    """
    Paid ritual actions: spend orbs, award ritual XP, log the ritual.
    """

    def __init__(self, orbs: OrbsService, progression: ProgressionService) -> None:
        self.orbs = orbs
        self.progression = progression

    async def perform(
        self,
        session: AsyncSession,
        user_id: int,
        *,
        kind: str,
        mode: str = "single",
        cost_orbs: int = 1,
        rune_id: str | None = None,
        number: int | None = None,
    ) -> RitualResult:
        if kind not in RITUAL_XP:
            raise ValueError(f"Unknown ritual kind: {kind!r}")

        async with transactional(session):
            spent = await self.orbs.spend(session, user_id, cost_orbs)
            if not spent.ok:
                return RitualResult(ok=False, reason=spent.reason, orbs=spent.record)

            xp = await self.progression.add_experience(session, user_id, RITUAL_XP[kind], f"ritual_{kind}")

            await append_ritual_log(
                session,
                user_id=user_id,
                type=kind.split("_", 1)[0],
                mode=mode,
                rune_id=rune_id,
                number=number,
                cost_orbs=spent.spent,
                xp_awarded=xp.awarded,
            )

        return RitualResult(ok=True, orbs=spent.record, xp_awarded=xp.awarded, level=xp.level)
