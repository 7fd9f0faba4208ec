"""
updates_sdk.tier3_platform.sources
───────────────────────────────────
Where the provider list comes from. Two variants share the ProviderSource
capability set and are chosen at construction:

  - StaticProviderSource: a fixed list handed over by the item's author.
    Validated eagerly; a bad list raises ConfigurationError immediately.
  - RemoteProviderSource: a JSON document fetched from the vendor, cached
    in the option store and refreshed once a day.

Remote cache lifecycle:

    uninitialized ──ensure()──▶ cached ──invalidate()──▶ uninitialized
                                  ▲  │
                                  └──┘ refresh() (daily trigger)

A failed refresh never touches an existing cache.
"""
from __future__ import annotations

import json
from typing import Any, Protocol, Sequence, runtime_checkable

from updates_sdk.tier0_core import environment as env
from updates_sdk.tier0_core.config import SdkConfig, get_config
from updates_sdk.tier0_core.errors import ConfigurationError, FetchFailure
from updates_sdk.tier0_core.logging import get_logger
from updates_sdk.tier0_core.models import Provider
from updates_sdk.tier1_runtime import clock
from updates_sdk.tier1_runtime.validate import parse_provider_document
from updates_sdk.tier2_reliability.scheduler import SchedulerProvider
from updates_sdk.tier2_reliability.store import NamespacedStore
from updates_sdk.tier3_platform.http import HttpFetcher


# ── Protocol ───────────────────────────────────────────────────────────────

@runtime_checkable
class ProviderSource(Protocol):
    def get_providers(self) -> list[Provider] | None: ...

    def refresh(self) -> bool: ...

    def ensure(self) -> list[Provider] | None: ...

    def invalidate(self) -> None: ...

    def teardown(self) -> None: ...


# ── Static variant ─────────────────────────────────────────────────────────

class StaticProviderSource:
    """Provider list passed in directly by the item."""

    def __init__(self, providers: Sequence[Provider]) -> None:
        if not providers:
            raise ConfigurationError(
                detail="providers must contain at least one Provider instance",
            )
        seen: set[str] = set()
        for index, provider in enumerate(providers):
            if not isinstance(provider, Provider):
                raise ConfigurationError(
                    detail=f"provider at index {index} is not a Provider instance",
                    index=index,
                )
            if provider.identifier in seen:
                raise ConfigurationError(
                    detail=f'The unique identifier "{provider.identifier}" is used more than once',
                    identifier=provider.identifier,
                )
            seen.add(provider.identifier)
        self._providers = list(providers)

    def get_providers(self) -> list[Provider]:
        return list(self._providers)

    def refresh(self) -> bool:
        return True

    def ensure(self) -> list[Provider]:
        return self.get_providers()

    def invalidate(self) -> None:
        pass

    def teardown(self) -> None:
        pass


# ── Remote variant ─────────────────────────────────────────────────────────

class RemoteProviderSource:
    """
    Provider list fetched from ``providers_url`` and cached per item.

    In development the URL itself can be overridden: a value saved through
    set_providers_url_override() wins over the environment variable named by
    SdkConfig.providers_url_env_var, which wins over ``providers_url``.
    """

    def __init__(
        self,
        store: NamespacedStore,
        providers_url: str,
        *,
        fetcher: HttpFetcher,
        scheduler: SchedulerProvider,
        environment: env.EnvironmentProvider | None = None,
        config: SdkConfig | None = None,
    ) -> None:
        if not providers_url:
            raise ConfigurationError(detail="providers_url must be a non-empty string")
        self._store = store
        self._providers_url = providers_url
        self._fetcher = fetcher
        self._scheduler = scheduler
        self._environment = environment or env.get_provider()
        self._config = config or get_config()
        self.update_event = f"{self._config.event_prefix}update_providers_{store.item_id}"
        self._log = get_logger(__name__, item_id=store.item_id)

    @property
    def item_id(self) -> str:
        return self._store.item_id

    # ── reads ──────────────────────────────────────────────────────────────

    def get_providers(self) -> list[Provider] | None:
        """Providers from the cache, or None when nothing usable is cached."""
        cached = self._store.get_providers_cache()
        if cached is None:
            return None
        parsed = parse_provider_document(cached)
        return parsed.providers or None

    def providers_url(self) -> str:
        """The URL the next refresh will hit."""
        if self._environment.get_environment() == env.DEVELOPMENT:
            override = self._store.get_providers_url_override()
            if override:
                return override
            from_env = self._environment.get_env_var(self._config.providers_url_env_var)
            if from_env:
                return from_env
        return self._providers_url

    # ── writes ─────────────────────────────────────────────────────────────

    def refresh(self) -> bool:
        """
        Fetch, validate and cache the provider list.

        Returns True when the cache was replaced. Any failure leaves the
        previous cache in place and returns False; the next daily trigger
        or empty-cache access tries again.
        """
        url = self.providers_url()
        try:
            document = self._download(url)
        except FetchFailure as exc:
            self._log.warning(
                "providers.refresh.failed",
                url=url,
                reason=exc.code,
                detail=exc.detail,
            )
            return False

        parsed = parse_provider_document(document)
        if not parsed.ok:
            self._log.warning(
                "providers.refresh.failed",
                url=url,
                reason="no_valid_providers",
                skipped=sorted(parsed.skipped),
            )
            return False

        self._store.set_providers_cache(parsed.wire)
        self._log.info(
            "providers.refresh.ok",
            url=url,
            count=len(parsed.providers),
            skipped=len(parsed.skipped),
        )
        return True

    def _download(self, url: str) -> dict[str, Any]:
        body = self._fetcher.get(url)
        try:
            document = json.loads(body)
        except (TypeError, ValueError, RecursionError) as exc:
            raise FetchFailure(
                code="malformed_response",
                detail=f"Provider list at {url} is not valid JSON",
                url=url,
            ) from exc
        if not isinstance(document, dict):
            raise FetchFailure(
                code="malformed_response",
                detail=f"Provider list at {url} is not a JSON object",
                url=url,
            )
        return document

    def ensure(self) -> list[Provider] | None:
        """
        Make sure a provider list is cached and the daily refresh is
        registered. Fetches synchronously when the cache is empty.
        """
        providers = self.get_providers()
        if providers is None:
            self.refresh()
            providers = self.get_providers()

        self._scheduler.on_trigger(self.update_event, self.refresh)
        if not self._scheduler.is_scheduled(self.update_event):
            tz = clock.resolve_timezone(self._config.timezone)
            first_run = clock.next_daily_run(clock.now(), self._config.refresh_hour, tz)
            self._scheduler.schedule_daily(self.update_event, first_run)
            self._log.info(
                "providers.schedule.registered",
                event_name=self.update_event,
                first_run=first_run.isoformat(),
            )
        return providers

    def invalidate(self) -> None:
        """Drop the cached list; the next ensure() fetches again."""
        self._store.delete_providers_cache()
        self._log.info("providers.cache.invalidated")

    def teardown(self) -> None:
        """Deregister the daily refresh. Call when the item is removed."""
        self._scheduler.clear_schedule(self.update_event)
        self._log.info("providers.schedule.cleared", event_name=self.update_event)


__all__ = ["ProviderSource", "StaticProviderSource", "RemoteProviderSource"]
