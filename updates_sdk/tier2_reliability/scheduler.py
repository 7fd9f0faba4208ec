"""
updates_sdk.tier2_reliability.scheduler
────────────────────────────────────────
Recurring-event primitives used for the daily provider-list refresh. The
host owns the actual clock: it either ticks InProcessScheduler.run_due()
from its own loop or supplies a SchedulerProvider that maps onto its cron.
Triggers are fire-and-forget; a failing callback is logged and the event
stays scheduled for the next day.

Select via: CPTM_SCHEDULER_BACKEND=inprocess|mock
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Protocol, runtime_checkable

from updates_sdk.tier0_core.config import get_config
from updates_sdk.tier0_core.errors import ConfigurationError
from updates_sdk.tier0_core.logging import get_logger
from updates_sdk.tier1_runtime import clock

log = get_logger(__name__)

DAILY = timedelta(days=1)


# ── Data models ────────────────────────────────────────────────────────────

@dataclass
class ScheduledEvent:
    name: str
    next_run: datetime
    interval: timedelta = DAILY
    runs: int = 0
    last_error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


# ── Protocol ───────────────────────────────────────────────────────────────

@runtime_checkable
class SchedulerProvider(Protocol):
    """Host task scheduler. Swap for the host's cron without changing the engine."""

    def schedule_daily(self, event_name: str, first_run: datetime) -> None: ...

    def is_scheduled(self, event_name: str) -> bool: ...

    def clear_schedule(self, event_name: str) -> None: ...

    def on_trigger(self, event_name: str, callback: Callable[[], Any]) -> None: ...


# ── In-process provider ────────────────────────────────────────────────────

class InProcessScheduler:
    """
    Keeps schedules in memory and runs callbacks when run_due() is called
    with a time at or past an event's next_run. Each due event fires at
    most once per call and is then rolled forward by whole days past ``at``.
    """

    def __init__(self) -> None:
        self._events: dict[str, ScheduledEvent] = {}
        self._callbacks: dict[str, list[Callable[[], Any]]] = {}

    def schedule_daily(self, event_name: str, first_run: datetime) -> None:
        self._events[event_name] = ScheduledEvent(name=event_name, next_run=first_run)
        log.debug("scheduler.registered", event_name=event_name, first_run=first_run.isoformat())

    def is_scheduled(self, event_name: str) -> bool:
        return event_name in self._events

    def clear_schedule(self, event_name: str) -> None:
        if self._events.pop(event_name, None) is not None:
            log.debug("scheduler.cleared", event_name=event_name)

    def on_trigger(self, event_name: str, callback: Callable[[], Any]) -> None:
        callbacks = self._callbacks.setdefault(event_name, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def get_event(self, event_name: str) -> ScheduledEvent | None:
        return self._events.get(event_name)

    def fire(self, event_name: str) -> list[Any]:
        """Run every callback registered for ``event_name`` now."""
        event = self._events.get(event_name)
        results: list[Any] = []
        for callback in list(self._callbacks.get(event_name, [])):
            try:
                results.append(callback())
            except Exception as exc:
                log.error("scheduler.callback_failed", event_name=event_name, error=str(exc))
                if event is not None:
                    event.last_error = str(exc)
                results.append(None)
        if event is not None:
            event.runs += 1
        return results

    def run_due(self, at: datetime | None = None) -> list[str]:
        """Fire every event whose next_run has passed. Returns fired event names."""
        at = at or clock.now()
        fired: list[str] = []
        for event in list(self._events.values()):
            if event.next_run > at:
                continue
            self.fire(event.name)
            while event.next_run <= at:
                event.next_run += event.interval
            fired.append(event.name)
        return fired


class MockScheduler(InProcessScheduler):
    """Alias for InProcessScheduler. Semantic clarity in tests."""
    pass


# ── Provider factory ───────────────────────────────────────────────────────

_provider: SchedulerProvider | None = None


def get_provider() -> SchedulerProvider:
    global _provider
    if _provider is not None:
        return _provider

    backend = get_config().scheduler_backend.lower()

    if backend in ("inprocess", "local"):
        _provider = InProcessScheduler()
    elif backend == "mock":
        _provider = MockScheduler()
    else:
        raise ConfigurationError(
            detail=f"Unknown CPTM_SCHEDULER_BACKEND: {backend!r}. Supported: inprocess, mock",
        )
    return _provider


def _reset_provider() -> None:
    global _provider
    _provider = None


__all__ = [
    "DAILY",
    "ScheduledEvent",
    "SchedulerProvider",
    "InProcessScheduler",
    "MockScheduler",
    "get_provider",
]
