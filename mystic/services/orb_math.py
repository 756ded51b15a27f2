# mystic/services/orb_math.py
"""
Pure orb arithmetic: no I/O, no clock reads.
"""
from __future__ import annotations

from datetime import datetime
from fractions import Fraction


def seconds_between(earlier: datetime, later: datetime) -> int:
    return max(0, int((later - earlier).total_seconds()))


def regen_eligible(elapsed_sec: int, interval_sec: int) -> int:
    """
    Whole regeneration intervals contained in `elapsed_sec`.
    Partial intervals never count.
    """
    if interval_sec <= 0:
        raise ValueError("interval_sec must be positive")
    if elapsed_sec < interval_sec:
        return 0
    return elapsed_sec // interval_sec


def _rate(rate: float) -> Fraction:
    if rate < 0:
        raise ValueError("regen rate must be non-negative")
    return Fraction(rate).limit_denominator(1000)


def regen_period(rate: float) -> int:
    """
    Fewest whole intervals that produce a whole number of orbs at `rate`:
    1 for integer rates, 2 for 0.5, 4 for 1.25.
    """
    return _rate(rate).denominator


def regen_step(intervals: int, rate: float) -> tuple[int, int]:
    """
    Returns (intervals_used, orbs) for `intervals` elapsed whole intervals.

    Only complete periods are used; the rest stays on the clock. Splitting
    a span across several checks therefore yields the same orbs as one check.
    """
    r = _rate(rate)
    if intervals <= 0:
        return 0, 0
    used = intervals - intervals % r.denominator
    return used, int(used * r)


def apply_regen(current: int, max_: int, to_grant: int) -> tuple[int, int]:
    """
    Returns (next, granted). Anything above `max_` is discarded, not banked.
    """
    if to_grant <= 0 or current >= max_:
        return current, 0

    granted = min(to_grant, max_ - current)
    return current + granted, granted


def next_regen_eta(current: int, max_: int, elapsed_sec: int, interval_sec: int) -> int:
    # full -> nothing to wait for
    if current >= max_:
        return 0
    return interval_sec - (elapsed_sec % interval_sec)


def can_spend(current: int, amount: int = 1, is_pro: bool = False) -> bool:
    if is_pro:
        return True
    return current >= amount


def format_time_remaining(seconds: int) -> str:
    if seconds <= 0:
        return "Now"

    hours, rest = divmod(int(seconds), 3600)
    minutes = rest // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
