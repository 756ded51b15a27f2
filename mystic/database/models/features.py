# mystic/database/models/features.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from mystic.database.base import Base


class FeaturesConfig(Base):
    """
    Single-row config table (id = 1).
    Owned by admins; the economy only reads it.
    """
    __tablename__ = "features_config"

    id: Mapped[int] = mapped_column(primary_key=True)  # always 1

    watch_to_earn_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    watch_cooldown_min: Mapped[int] = mapped_column(Integer, default=30)
    watch_daily_limit: Mapped[int] = mapped_column(Integer, default=5)

    wheel_daily_free: Mapped[int] = mapped_column(Integer, default=1)
    wheel_daily_free_pro: Mapped[int] = mapped_column(Integer, default=2)
    wheel_allow_vision_extra: Mapped[bool] = mapped_column(Boolean, default=True)
    wheel_daily_max: Mapped[int] = mapped_column(Integer, default=5)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )
