"""
updates_sdk.tier0_core.logging
───────────────────────────────
Structured logs with levels, redaction and stdout routing. Every module logs
through get_logger(__name__) with dotted event names, e.g.
``providers.refresh.failed``. Records produced on behalf of one item carry
its ``item_id``, either from an item-bound logger or from item_context().

Minimal stack: structlog (stdout JSON or console)
Configure via: CPTM_LOG_LEVEL, CPTM_LOG_FORMAT=json|console
"""
from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog


# ── Configuration ─────────────────────────────────────────────────────────────

def _configure_structlog() -> None:
    log_level = os.getenv("CPTM_LOG_LEVEL", "INFO").upper()
    log_format = os.getenv("CPTM_LOG_FORMAT", "json").lower()

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _redact_processor,
    ]

    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    sdk_logger = logging.getLogger("updates_sdk")
    sdk_logger.addHandler(handler)
    sdk_logger.setLevel(getattr(logging, log_level, logging.INFO))


# ── Redaction processor ───────────────────────────────────────────────────────

_REDACT_KEYS = frozenset({
    "password", "passwd", "secret", "token", "api_key", "apikey",
    "authorization", "auth", "credential", "license_key", "access_token",
})

_REDACTED = "[REDACTED]"


def _redact_processor(
    logger: Any, method: str, event_dict: dict
) -> dict:
    """Strip sensitive fields from log records before output."""
    for key in list(event_dict.keys()):
        if key.lower() in _REDACT_KEYS:
            event_dict[key] = _REDACTED
    return event_dict


# ── Public API ────────────────────────────────────────────────────────────────

_configured = False


def get_logger(name: str | None = None, item_id: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structured logger bound to the given name. Loggers owned by a
    single item pass ``item_id`` so every record names the item.

    Usage:
        log = get_logger(__name__)
        log.warning("providers.refresh.failed", url=url, reason="not_json")

        item_log = get_logger(__name__, item_id="my-plugin")
        item_log.info("providers.refresh.ok", count=2)
    """
    global _configured
    if not _configured:
        _configure_structlog()
        _configured = True
    logger = structlog.get_logger(name or __name__)
    if item_id is not None:
        logger = logger.bind(item_id=item_id)
    return logger


@contextmanager
def item_context(item_id: str, **extra: Any) -> Iterator[None]:
    """
    Tag every log record emitted inside the block with ``item_id``.
    Previous context values are restored on exit, so host log lines
    written after the block are left alone.
    """
    with structlog.contextvars.bound_contextvars(item_id=item_id, **extra):
        yield


__all__ = ["get_logger", "item_context"]
