# mystic/database/models/user.py
from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import BigInteger, Boolean, Date, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from mystic.database.base import Base


class User(Base):
    """
    User profile store.
    The economy reads `pro_entitlement` only; billing owns writing it.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger, unique=True, index=True)

    username: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(128), nullable=True)

    pro_entitlement: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # progression
    xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_checkin_day: Mapped[date | None] = mapped_column(Date, nullable=True)
    achievements: Mapped[str] = mapped_column(String(512), default="", nullable=False)  # comma separated ids

    # watch-to-earn ("vision") bookkeeping
    last_watch_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    watch_day: Mapped[date | None] = mapped_column(Date, nullable=True)
    watches_today: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def achievement_ids(self) -> list[str]:
        return [a for a in (self.achievements or "").split(",") if a]
