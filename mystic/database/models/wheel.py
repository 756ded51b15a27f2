# mystic/database/models/wheel.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from mystic.database.base import Base


class WheelLedger(Base):
    """
    Rolling daily spin counter. Rolled over lazily when `date_key` is not today (UTC).
    """
    __tablename__ = "wheel_ledger"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True)

    date_key: Mapped[str] = mapped_column(String(10))  # YYYY-MM-DD
    spins_today: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_spin_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)


class SpinAttempt(Base):
    """
    Completed spin keyed by a client supplied attempt id.
    A retry with the same id replays this row instead of spinning again.
    """
    __tablename__ = "wheel_spin_attempts"
    __table_args__ = (
        UniqueConstraint("user_id", "attempt_id", name="uq_wheel_spin_attempt_user_attempt"),
        Index("ix_wheel_spin_attempts_created", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    attempt_id: Mapped[str] = mapped_column(String(64))

    mode: Mapped[str] = mapped_column(String(16))
    segment_id: Mapped[str] = mapped_column(String(32))
    segment_index: Mapped[int] = mapped_column(Integer)
    granted: Mapped[int] = mapped_column(Integer, default=0)
    spins_remaining_after: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
