"""
updates_sdk.tier3_platform.resolution
──────────────────────────────────────
Endpoint resolution: turns (environment, overrides, selection, providers)
into the single URL the update checker should query.

Precedence, highest first:
  1. explicit endpoint override passed by the caller (manual testing)
  2. development only: saved override URL, then the env-var override URL
  3. selected provider: staging API URL in staging when it has one,
     production API URL otherwise

A missing or disabled provider yields None; the host then skips the update
check. The result finally runs through URL filters registered per item.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from updates_sdk.tier0_core import environment as env
from updates_sdk.tier0_core.logging import get_logger
from updates_sdk.tier0_core.models import Provider, ProviderEndpoint
from updates_sdk.tier3_platform.selection import resolve_selected_provider

log = get_logger(__name__)

UrlFilter = Callable[[str, "Provider | None", str], "str | None"]


@dataclass(frozen=True)
class DevOverrides:
    """Override URLs that only apply in development."""

    persisted_url: str | None = None
    env_url: str | None = None

    def first(self) -> str | None:
        for url in (self.persisted_url, self.env_url):
            if isinstance(url, str) and url:
                return url
        return None


# ── URL filters ────────────────────────────────────────────────────────────

_url_filters: dict[str, list[UrlFilter]] = {}


def register_url_filter(item_id: str, fn: UrlFilter) -> UrlFilter:
    """
    Register a post-processing step for URLs resolved for ``item_id``.

    Filters run in registration order and receive (url, provider,
    environment). Returning a falsy value drops the URL.

    Usage:
        def pin_region(url, provider, environment):
            return url.replace("://", "://eu.") if provider else url

        register_url_filter("my-plugin", pin_region)
    """
    _url_filters.setdefault(item_id, []).append(fn)
    return fn


def url_filter(item_id: str) -> Callable[[UrlFilter], UrlFilter]:
    """Decorator form of register_url_filter."""
    def decorator(fn: UrlFilter) -> UrlFilter:
        return register_url_filter(item_id, fn)
    return decorator


def clear_url_filters(item_id: str | None = None) -> None:
    if item_id is None:
        _url_filters.clear()
    else:
        _url_filters.pop(item_id, None)


def apply_url_filters(
    item_id: str,
    url: str | None,
    provider: Provider | None,
    environment: str,
) -> str | None:
    for fn in _url_filters.get(item_id, []):
        if not url:
            break
        url = fn(url, provider, environment) or None
    return url


# ── Resolution ─────────────────────────────────────────────────────────────

def resolve_provider_endpoint(
    provider: Provider,
    environment: str,
    dev_overrides: DevOverrides | None = None,
) -> ProviderEndpoint:
    """The endpoint ``provider`` would be queried at in ``environment``."""
    if environment == env.DEVELOPMENT and dev_overrides is not None:
        override = dev_overrides.first()
        if override:
            return ProviderEndpoint.self_referential(override)

    if environment == env.STAGING and provider.staging_endpoint is not None:
        return provider.staging_endpoint
    return provider.production_endpoint


def resolve_endpoint(
    providers: Sequence[Provider] | None,
    environment: str,
    selected_id: str | None,
    dev_overrides: DevOverrides | None = None,
    *,
    endpoint_override: str | None = None,
) -> str | None:
    """Return the update API URL, or None when no update check should run."""
    if endpoint_override:
        return endpoint_override

    if environment == env.DEVELOPMENT and dev_overrides is not None:
        override = dev_overrides.first()
        if override:
            return ProviderEndpoint.self_referential(override).api_url

    provider = resolve_selected_provider(providers, selected_id)
    if provider is None:
        log.debug("resolution.no_provider", selected_id=selected_id)
        return None

    if not provider.enabled:
        log.debug("resolution.provider_disabled", identifier=provider.identifier)
        return None

    return resolve_provider_endpoint(provider, environment).api_url


__all__ = [
    "DevOverrides",
    "UrlFilter",
    "register_url_filter",
    "url_filter",
    "clear_url_filters",
    "apply_url_filters",
    "resolve_provider_endpoint",
    "resolve_endpoint",
]
