# mystic/services/inventory.py
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database import transactional
from mystic.database.models import Inventory

STREAK_FREEZE = "streak_freeze"

_COLUMNS = {
    STREAK_FREEZE: Inventory.streak_freeze,
}


@dataclass(frozen=True, slots=True)
class InventorySnapshot:
    streak_freeze: int = 0


def _column(item: str):
    try:
        return _COLUMNS[item]
    except KeyError:
        raise ValueError(f"Unknown inventory item: {item!r}") from None


def _insert_for(session: AsyncSession):
    if session.get_bind().dialect.name == "postgresql":
        return pg_insert
    return sqlite_insert


class InventoryService:
    async def get(self, session: AsyncSession, user_id: int) -> InventorySnapshot:
        res = await session.execute(select(Inventory).where(Inventory.user_id == user_id))
        row = res.scalar_one_or_none()
        if row is None:
            return InventorySnapshot()
        return InventorySnapshot(streak_freeze=int(row.streak_freeze or 0))

    async def increment(self, session: AsyncSession, user_id: int, item: str, amount: int) -> int:
        """
        Atomic upsert `item += amount`. Returns the new count.
        """
        col = _column(item)
        if amount <= 0:
            raise ValueError("increment amount must be positive")

        insert = _insert_for(session)
        stmt = insert(Inventory).values(user_id=user_id, **{item: amount}).on_conflict_do_update(
            index_elements=["user_id"],
            set_={item: col + amount},
        )

        async with transactional(session):
            await session.execute(stmt)
            res = await session.execute(select(col).where(Inventory.user_id == user_id))
            return int(res.scalar_one())

    async def consume(self, session: AsyncSession, user_id: int, item: str) -> bool:
        """
        Use one unit of `item`. False (and no write) when the user has none.
        """
        col = _column(item)
        async with transactional(session):
            res = await session.execute(
                update(Inventory)
                .where(Inventory.user_id == user_id, col >= 1)
                .values({item: col - 1})
                .execution_options(synchronize_session=False)
            )
        return bool(res.rowcount)
