"""
updates_sdk.tier0_core.errors
──────────────────────────────
Error taxonomy for provider resolution and provider-list refresh, with
optional Sentry/OTel capture. Only ConfigurationError is fatal; the other
classes describe recoverable outcomes that the engine normally reports by
returning None or False instead of raising.

Minimal stack: Sentry OSS + OTel error signals
Select via:    CPTM_ERROR_BACKEND=sentry|otel|none
"""
from __future__ import annotations

import os
from typing import Any


# ── Base error ────────────────────────────────────────────────────────────────

class SdkError(Exception):
    """
    Base class for all updates_sdk errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - user_message: safe to surface to end users
    - detail: internal context, never shown to users
    - recoverable: False only for errors that must stop the host at startup
    """

    code: str = "internal_error"
    recoverable: bool = True

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "An unexpected error occurred.",
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.user_message = user_message
        self.detail = detail or user_message
        self.metadata = metadata
        super().__init__(self.detail)
        _capture(self)

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.user_message,
            }
        }


# ── Typed error classes ───────────────────────────────────────────────────────

class ConfigurationError(SdkError):
    """Malformed provider list or settings detected at construction."""
    code = "configuration_error"
    recoverable = False


class ResolutionMiss(SdkError):
    """No provider selectable, selected provider disabled, or no endpoint."""
    code = "resolution_miss"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "No update endpoint is configured.",
        reason: str = "no_provider",
        **metadata: Any,
    ) -> None:
        self.reason = reason
        super().__init__(code, user_message, **metadata)


class FetchFailure(SdkError):
    """Transport error or malformed provider-list response."""
    code = "fetch_failure"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "Could not fetch the provider list.",
        url: str | None = None,
        **metadata: Any,
    ) -> None:
        self.url = url
        super().__init__(code, user_message, **metadata)


class InvalidSelectionRequest(SdkError):
    """Attempt to select a provider identifier absent from the current list."""
    code = "invalid_selection"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "The selected provider is not available.",
        identifier: str | None = None,
        **metadata: Any,
    ) -> None:
        self.identifier = identifier
        super().__init__(code, user_message, **metadata)


# ── Error capture backend ─────────────────────────────────────────────────────

def _capture(error: SdkError) -> None:
    """Send error to configured backend. Called automatically by SdkError.__init__."""
    backend = os.getenv("CPTM_ERROR_BACKEND", "none").lower()
    if backend == "none":
        return
    if backend == "sentry":
        _capture_sentry(error)
    elif backend == "otel":
        _capture_otel(error)


def _capture_sentry(error: SdkError) -> None:
    try:
        import sentry_sdk
    except ImportError:
        return
    if not error.recoverable:
        sentry_sdk.capture_exception(error)
    else:
        sentry_sdk.capture_message(
            str(error),
            level="warning",
            extras={"code": error.code, **error.metadata},
        )


def _capture_otel(error: SdkError) -> None:
    try:
        from opentelemetry import trace
    except ImportError:
        return
    span = trace.get_current_span()
    span.record_exception(error)
    span.set_status(trace.StatusCode.ERROR, str(error))


__all__ = [
    "SdkError",
    "ConfigurationError",
    "ResolutionMiss",
    "FetchFailure",
    "InvalidSelectionRequest",
]
