"""
updates_sdk.tier1_runtime.clock
────────────────────────────────
Mockable time source plus the daily-run arithmetic used by the provider
list refresh. Code that needs the current time calls into this module
instead of datetime.now() so schedules are deterministic in tests.
"""
from __future__ import annotations

from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

FALLBACK_TIMEZONE = "Asia/Tokyo"


# ── Clock implementation ───────────────────────────────────────────────────

class Clock:
    """Mockable clock. Override _now_fn to control time in tests."""

    def __init__(self, now_fn: Callable[[], datetime] | None = None) -> None:
        self._now_fn = now_fn or (lambda: datetime.now(tz=timezone.utc))

    def now(self) -> datetime:
        """Return the current UTC datetime."""
        return self._now_fn()

    def freeze(self, dt: datetime) -> "Clock":
        """Return a new Clock frozen at the given datetime."""
        return Clock(now_fn=lambda: dt)

    def advance(self, seconds: float) -> "Clock":
        """Return a new Clock advanced by *seconds* from current time."""
        base = self.now()
        return Clock(now_fn=lambda: datetime.fromtimestamp(
            base.timestamp() + seconds, tz=timezone.utc
        ))


# ── Daily schedule arithmetic ──────────────────────────────────────────────

def resolve_timezone(name: str | None) -> tzinfo:
    """Return the named zone, falling back to Asia/Tokyo when unknown."""
    try:
        return ZoneInfo(name or FALLBACK_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(FALLBACK_TIMEZONE)


def next_daily_run(at: datetime, hour: int, tz: tzinfo) -> datetime:
    """
    First run of a daily job anchored at ``hour``:00 local time.

    The job is always pushed to tomorrow's slot, even when today's slot is
    still ahead, so a freshly registered schedule never fires on the same
    day the list was fetched synchronously.
    """
    local_day = at.astimezone(tz).date()
    today_slot = datetime.combine(local_day, time(hour=hour), tzinfo=tz)
    return today_slot + timedelta(days=1)


# ── Module-level singleton ─────────────────────────────────────────────────

_clock = Clock()


def get_clock() -> Clock:
    """Return the global clock instance."""
    return _clock


def set_clock(clock: Clock) -> None:
    """Replace the global clock (use in tests)."""
    global _clock
    _clock = clock


def now() -> datetime:
    """Return the current UTC datetime."""
    return _clock.now()


__all__ = [
    "Clock",
    "FALLBACK_TIMEZONE",
    "resolve_timezone",
    "next_daily_run",
    "get_clock",
    "set_clock",
    "now",
]
