# mystic/utils/formatting.py
from __future__ import annotations

from mystic.services.orb_math import format_time_remaining
from mystic.services.orbs import OrbsSnapshot
from mystic.services.wheel import RewardSummary


def orbs_line(record: OrbsSnapshot, next_eta_seconds: int = 0) -> str:
    if record.is_pro:
        return "🔮 Orbs: <b>∞</b> (Pro)"

    text = f"🔮 Orbs: <b>{record.current}/{record.max}</b>"
    if record.current < record.max and next_eta_seconds > 0:
        text += f"\n⏳ Next orb in {format_time_remaining(next_eta_seconds)}"
    return text


def reward_line(summary: RewardSummary) -> str:
    parts = []
    if summary.orbs_granted:
        parts.append(f"+{summary.orbs_granted} orb(s)")
    if summary.xp_granted:
        parts.append(f"+{summary.xp_granted} XP")
    if summary.streak_freeze_granted:
        parts.append(f"+{summary.streak_freeze_granted} streak freeze")
    return ", ".join(parts) or "nothing"
