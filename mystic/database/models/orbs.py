# mystic/database/models/orbs.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from mystic.database.base import Base


class OrbsRecord(Base):
    """
    One row per user. `last_regen_at` is a naive UTC checkpoint that only
    ever moves in whole regeneration intervals.
    """
    __tablename__ = "orbs"
    __table_args__ = (
        CheckConstraint("current >= 0", name="ck_orbs_current_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True)

    current: Mapped[int] = mapped_column(Integer, nullable=False)
    max: Mapped[int] = mapped_column(Integer, nullable=False)
    regen_rate_per_hour: Mapped[float] = mapped_column(Float, nullable=False)
    last_regen_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
