"""
updates_sdk.tier3_platform.http
────────────────────────────────
Blocking HTTP GET used to download the provider list. Every failure mode
(connection error, timeout, non-2xx status) surfaces as FetchFailure so the
caller handles exactly one error type.

Backed by: httpx (sync client)
Configure via: CPTM_HTTP_TIMEOUT
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx

from updates_sdk import __version__
from updates_sdk.tier0_core.config import get_config
from updates_sdk.tier0_core.errors import FetchFailure


@runtime_checkable
class HttpFetcher(Protocol):
    def get(self, url: str) -> str: ...


class HttpxFetcher:
    """
    Sync httpx fetcher.

    Usage::

        fetcher = HttpxFetcher(timeout=5.0)
        body = fetcher.get("https://vendor.example/providers.json")
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout = timeout if timeout is not None else get_config().http_timeout
        self._transport = transport

    def _build_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": f"updates-sdk/{__version__}",
        }

    def get(self, url: str) -> str:
        try:
            with httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = client.get(url, headers=self._build_headers())
                response.raise_for_status()
                return response.text
        except httpx.HTTPError as exc:
            raise FetchFailure(
                detail=f"GET {url} failed: {exc}",
                url=url,
            ) from exc


class MockHttpFetcher:
    """Canned responses for tests. Unknown URLs and registered errors raise FetchFailure."""

    def __init__(self, responses: dict[str, str] | None = None) -> None:
        self._responses: dict[str, str | Exception] = dict(responses or {})
        self.calls: list[str] = []

    def add(self, url: str, body: str) -> None:
        self._responses[url] = body

    def fail(self, url: str, error: Exception | None = None) -> None:
        self._responses[url] = error or FetchFailure(detail=f"GET {url} failed", url=url)

    def get(self, url: str) -> str:
        self.calls.append(url)
        response = self._responses.get(url)
        if response is None:
            raise FetchFailure(detail=f"GET {url} failed: no route", url=url)
        if isinstance(response, Exception):
            raise response
        return response


_fetcher: HttpFetcher | None = None


def get_fetcher() -> HttpFetcher:
    global _fetcher
    if _fetcher is None:
        _fetcher = HttpxFetcher()
    return _fetcher


def _reset_fetcher() -> None:
    global _fetcher
    _fetcher = None


__all__ = ["HttpFetcher", "HttpxFetcher", "MockHttpFetcher", "get_fetcher"]
