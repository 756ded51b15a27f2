# mystic/database/models/ritual_log.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from mystic.database.base import Base


class RitualLog(Base):
    """
    Append-only activity log (rituals + wheel spins). Never read back by the economy.
    """
    __tablename__ = "ritual_logs"
    __table_args__ = (
        Index("ix_ritual_logs_user_time", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    type: Mapped[str] = mapped_column(String(16), index=True)   # "rune" | "numerology" | "wheel"
    mode: Mapped[str] = mapped_column(String(16))               # "daily" | "single" | "vision" ...

    wheel_kind: Mapped[str | None] = mapped_column(String(16), nullable=True)
    wheel_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rune_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    cost_orbs: Mapped[int] = mapped_column(Integer, default=0)
    xp_awarded: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
