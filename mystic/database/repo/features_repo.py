# mystic/database/repo/features_repo.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mystic.database.models import FeaturesConfig

log = logging.getLogger(__name__)

CONFIG_ID = 1


@dataclass(frozen=True, slots=True)
class FeaturesDTO:
    watch_to_earn_enabled: bool = True
    watch_cooldown_min: int = 30
    watch_daily_limit: int = 5
    wheel_daily_free: int = 1
    wheel_daily_free_pro: int = 2
    wheel_allow_vision_extra: bool = True
    wheel_daily_max: int = 5


DEFAULT_FEATURES = FeaturesDTO()


def _or_default(value, default):
    return default if value is None else value


async def get_features(session: AsyncSession) -> FeaturesDTO:
    """
    Read-only view of the features row.
    A missing row or a broken store yields DEFAULT_FEATURES: the app keeps working.
    """
    try:
        res = await session.execute(select(FeaturesConfig).where(FeaturesConfig.id == CONFIG_ID))
        cfg = res.scalar_one_or_none()
    except SQLAlchemyError:
        log.warning("features config unreadable, using defaults", exc_info=True)
        return DEFAULT_FEATURES

    if cfg is None:
        return DEFAULT_FEATURES

    d = DEFAULT_FEATURES
    return FeaturesDTO(
        watch_to_earn_enabled=bool(_or_default(cfg.watch_to_earn_enabled, d.watch_to_earn_enabled)),
        watch_cooldown_min=int(_or_default(cfg.watch_cooldown_min, d.watch_cooldown_min)),
        watch_daily_limit=int(_or_default(cfg.watch_daily_limit, d.watch_daily_limit)),
        wheel_daily_free=int(_or_default(cfg.wheel_daily_free, d.wheel_daily_free)),
        wheel_daily_free_pro=int(_or_default(cfg.wheel_daily_free_pro, d.wheel_daily_free_pro)),
        wheel_allow_vision_extra=bool(_or_default(cfg.wheel_allow_vision_extra, d.wheel_allow_vision_extra)),
        wheel_daily_max=int(_or_default(cfg.wheel_daily_max, d.wheel_daily_max)),
    )


async def get_or_create_features_row(session: AsyncSession) -> FeaturesConfig:
    res = await session.execute(select(FeaturesConfig).where(FeaturesConfig.id == CONFIG_ID))
    cfg = res.scalar_one_or_none()
    if cfg:
        return cfg

    cfg = FeaturesConfig(id=CONFIG_ID)
    session.add(cfg)
    await session.flush()
    return cfg


async def set_features(session: AsyncSession, **values) -> None:
    """
    Admin-side writer (e.g. set_features(session, wheel_daily_max=8)).
    """
    unknown = [k for k in values if k not in FeaturesDTO.__dataclass_fields__]
    if unknown:
        raise ValueError(f"Unknown feature field(s): {', '.join(sorted(unknown))}")

    await get_or_create_features_row(session)
    await session.execute(
        update(FeaturesConfig).where(FeaturesConfig.id == CONFIG_ID).values(**values)
    )


_TRUE = {"1", "on", "true", "yes"}
_FALSE = {"0", "off", "false", "no"}


def parse_feature_value(name: str, raw: str) -> bool | int:
    """
    Admin text -> typed value for `set_features`. Raises ValueError on an
    unknown field or a value of the wrong shape.
    """
    if name not in FeaturesDTO.__dataclass_fields__:
        raise ValueError(f"Unknown feature field: {name}")

    value = raw.strip().lower()
    if isinstance(getattr(DEFAULT_FEATURES, name), bool):
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        raise ValueError(f"{name} expects on/off, got {raw!r}")

    try:
        number = int(value)
    except ValueError:
        raise ValueError(f"{name} expects an integer, got {raw!r}") from None
    if number < 0:
        raise ValueError(f"{name} must be non-negative")
    return number
