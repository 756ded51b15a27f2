# mystic/config/settings.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

from mystic.services.orbs import OrbEconomyConfig


def _require(env: Mapping[str, str], key: str) -> str:
    v = env.get(key)
    if v is None or not v.strip():
        raise RuntimeError(f"Missing required environment variable: {key}")
    return v.strip()


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _to_float(value: str, key_name: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid number for {key_name}: {value!r}") from e


def _opt_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = (env.get(key) or "").strip()
    return _to_int(raw, key) if raw else default


def _opt_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = (env.get(key) or "").strip()
    return _to_float(raw, key) if raw else default


def _parse_int_list(raw: str | None, key_name: str) -> list[int]:
    """
    Comma/space/newline separated ints; brackets and quotes are ignored.
      "951258732"
      "951258732,123"
      "[951258732, 123]"
    """
    if not raw:
        return []

    cleaned = raw.strip().strip("[](){}").strip()
    if not cleaned:
        return []

    out: list[int] = []
    for p in re.split(r"[,\s]+", cleaned):
        p2 = p.strip().strip("'\"")
        if p2:
            out.append(_to_int(p2, key_name))
    return out


@dataclass(frozen=True, slots=True)
class Settings:
    # --- required ---
    bot_token: str
    bot_username: str

    # --- optional ---
    database_url: str = "sqlite+aiosqlite:///./mystic.db"
    root_admin_ids: tuple[int, ...] = ()
    environment: str = "production"  # production | development

    # --- orb economy tunables ---
    orbs_free_max: int = 6
    orbs_free_regen_per_hour: float = 1
    orbs_regen_interval_sec: int = 3600
    orbs_pro_max: int = 9999
    orbs_pro_regen_per_hour: float = 9999

    # --- housekeeping ---
    spin_attempt_ttl_days: int = 7

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    def orb_economy(self) -> OrbEconomyConfig:
        return OrbEconomyConfig(
            free_max=self.orbs_free_max,
            free_regen_per_hour=self.orbs_free_regen_per_hour,
            regen_interval_sec=self.orbs_regen_interval_sec,
            pro_max=self.orbs_pro_max,
            pro_regen_per_hour=self.orbs_pro_regen_per_hour,
        )

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "Settings":
        d = cls.__dataclass_fields__
        return cls(
            bot_token=_require(env, "BOT_TOKEN"),
            bot_username=_require(env, "BOT_USERNAME"),
            database_url=(env.get("DATABASE_URL") or d["database_url"].default).strip(),
            root_admin_ids=tuple(_parse_int_list(env.get("ROOT_ADMIN_IDS"), "ROOT_ADMIN_IDS")),
            environment=(env.get("ENVIRONMENT") or "production").strip() or "production",
            orbs_free_max=_opt_int(env, "ORBS_FREE_MAX", d["orbs_free_max"].default),
            orbs_free_regen_per_hour=_opt_float(
                env, "ORBS_FREE_REGEN_PER_HOUR", d["orbs_free_regen_per_hour"].default
            ),
            orbs_regen_interval_sec=_opt_int(env, "ORBS_REGEN_INTERVAL_SEC", d["orbs_regen_interval_sec"].default),
            orbs_pro_max=_opt_int(env, "ORBS_PRO_MAX", d["orbs_pro_max"].default),
            orbs_pro_regen_per_hour=_opt_float(
                env, "ORBS_PRO_REGEN_PER_HOUR", d["orbs_pro_regen_per_hour"].default
            ),
            spin_attempt_ttl_days=_opt_int(env, "SPIN_ATTEMPT_TTL_DAYS", d["spin_attempt_ttl_days"].default),
        )

    @classmethod
    def load(cls) -> "Settings":
        """
        Loads from process env (and .env if present).
        Fails fast for required fields.
        """
        load_dotenv()
        return cls.from_env(os.environ)
