"""
updates_sdk.client
──────────────────
Per-item entry point. Builds the collaborators from config when they are
not injected, keeps the provider list available, and hands the resolved
update URL to the host's update checker.

Usage (static provider list):

    from updates_sdk import Provider, ProviderEndpoint, UpdateClient

    acme = Provider("acme", ProviderEndpoint("https://acme.example", "https://api.acme.example"))
    client = UpdateClient.with_providers("my-plugin", "1.4.0", [acme])
    url = client.init()
    if url:
        build_update_checker(url)

Usage (vendor-hosted provider list):

    client = UpdateClient.with_remote_providers(
        "my-plugin", "1.4.0", "https://vendor.example/providers.json"
    )
    url = client.init()
    ...
    client.teardown()  # on uninstall
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from updates_sdk.tier0_core import environment as env
from updates_sdk.tier0_core.config import SdkConfig, get_config
from updates_sdk.tier0_core.errors import ResolutionMiss
from updates_sdk.tier0_core.logging import get_logger, item_context
from updates_sdk.tier0_core.models import Provider, ProviderEndpoint
from updates_sdk.tier2_reliability import scheduler as scheduler_mod
from updates_sdk.tier2_reliability.scheduler import SchedulerProvider
from updates_sdk.tier2_reliability.store import KeyValueStore, NamespacedStore, get_store
from updates_sdk.tier3_platform.http import HttpFetcher, get_fetcher
from updates_sdk.tier3_platform.resolution import (
    DevOverrides,
    apply_url_filters,
    resolve_endpoint,
    resolve_provider_endpoint,
)
from updates_sdk.tier3_platform.selection import (
    resolve_selected_provider,
    set_selected_provider,
)
from updates_sdk.tier3_platform.sources import (
    ProviderSource,
    RemoteProviderSource,
    StaticProviderSource,
)

log = get_logger(__name__)

API_ERROR_TYPE = "WCEXCPTM_API_ERROR"
SET_PROVIDER_FIELD = "cptmc_set_provider"


@dataclass
class SettingsView:
    """Everything a host settings screen needs to render provider choice."""

    item_id: str
    providers: list[Provider] = field(default_factory=list)
    selected_identifier: str | None = None
    overrides_editable: bool = False
    update_url_override: str | None = None
    providers_url_override: str | None = None
    option_keys: dict[str, str] = field(default_factory=dict)

    @property
    def needs_selection(self) -> bool:
        return bool(self.providers) and self.selected_identifier is None


class UpdateClient:
    """Resolves the update endpoint for one item."""

    def __init__(
        self,
        item_id: str,
        item_version: str,
        source: ProviderSource,
        store: NamespacedStore,
        *,
        environment: env.EnvironmentProvider | None = None,
        config: SdkConfig | None = None,
    ) -> None:
        self.item_id = item_id
        self.item_version = item_version
        self.source = source
        self.store = store
        self._environment = environment or env.get_provider()
        self._config = config or get_config()
        self.update_url: str | None = None

    # ── construction helpers ───────────────────────────────────────────────

    @classmethod
    def with_providers(
        cls,
        item_id: str,
        item_version: str,
        providers: Sequence[Provider],
        *,
        store: KeyValueStore | None = None,
        environment: env.EnvironmentProvider | None = None,
        config: SdkConfig | None = None,
    ) -> "UpdateClient":
        """Client over a fixed provider list. Raises ConfigurationError on a bad list."""
        source = StaticProviderSource(providers)
        namespaced = NamespacedStore(store or get_store(), item_id)
        return cls(item_id, item_version, source, namespaced, environment=environment, config=config)

    @classmethod
    def with_remote_providers(
        cls,
        item_id: str,
        item_version: str,
        providers_url: str,
        *,
        store: KeyValueStore | None = None,
        fetcher: HttpFetcher | None = None,
        scheduler: SchedulerProvider | None = None,
        environment: env.EnvironmentProvider | None = None,
        config: SdkConfig | None = None,
    ) -> "UpdateClient":
        """Client over a vendor-hosted provider list."""
        namespaced = NamespacedStore(store or get_store(), item_id)
        environment = environment or env.get_provider()
        source = RemoteProviderSource(
            namespaced,
            providers_url,
            fetcher=fetcher or get_fetcher(),
            scheduler=scheduler or scheduler_mod.get_provider(),
            environment=environment,
            config=config,
        )
        return cls(item_id, item_version, source, namespaced, environment=environment, config=config)

    # ── state ──────────────────────────────────────────────────────────────

    @property
    def environment(self) -> str:
        return self._environment.get_environment()

    def get_providers(self) -> list[Provider] | None:
        return self.source.get_providers()

    def get_selected_provider(self) -> Provider | None:
        return resolve_selected_provider(
            self.get_providers(), self.store.get_selected_provider_id()
        )

    def dev_overrides(self) -> DevOverrides:
        return DevOverrides(
            persisted_url=self.store.get_update_url_override(),
            env_url=self._environment.get_env_var(self._config.update_url_env_var),
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    def init(self, endpoint_override: str | None = None) -> str | None:
        """
        Prepare the provider list and resolve the update URL.

        Returns the URL the update checker should use, or None when the
        item has no usable provider yet. The result is also kept on
        ``update_url``.
        """
        with item_context(self.item_id):
            providers = self.source.ensure()
            environment = self.environment
            selected_id = self.store.get_selected_provider_id()
            overrides = self.dev_overrides()

            url = resolve_endpoint(
                providers,
                environment,
                selected_id,
                overrides,
                endpoint_override=endpoint_override,
            )
            overridden = bool(endpoint_override) or (
                environment == env.DEVELOPMENT and overrides.first() is not None
            )
            provider = None if overridden else resolve_selected_provider(providers, selected_id)
            self.update_url = apply_url_filters(self.item_id, url, provider, environment)

            if self.update_url is None:
                log.info("update_url.unavailable", environment=environment)
            else:
                log.info("update_url.resolved", environment=environment, url=self.update_url)
        return self.update_url

    def require_update_url(self, endpoint_override: str | None = None) -> str:
        """Like init() but raises ResolutionMiss instead of returning None."""
        url = self.init(endpoint_override)
        if url is None:
            provider = self.get_selected_provider()
            if provider is None:
                reason = "no_provider"
            elif not provider.enabled:
                reason = "provider_disabled"
            else:
                # a URL filter dropped the endpoint
                reason = "filtered"
            raise ResolutionMiss(
                detail=f"No update endpoint available for {self.item_id!r}",
                reason=reason,
            )
        return url

    def refresh_providers(self) -> bool:
        return self.source.refresh()

    def invalidate_providers(self) -> None:
        """Forget the cached provider list, e.g. after an environment switch."""
        self.source.invalidate()

    def teardown(self) -> None:
        """Release scheduled work. Call when the item is deactivated or removed."""
        self.source.teardown()

    # ── selection & overrides ──────────────────────────────────────────────

    def set_selected_provider(self, identifier: str, *, strict: bool = False) -> bool:
        return set_selected_provider(self.store, self.get_providers(), identifier, strict=strict)

    def update_selected_provider_if_set(self, form: Mapping[str, Any]) -> bool:
        """Apply a provider choice submitted as form[SET_PROVIDER_FIELD][item_id]."""
        choices = form.get(SET_PROVIDER_FIELD)
        if not isinstance(choices, Mapping):
            return False
        selected = choices.get(self.item_id)
        if not selected:
            return False
        return self.set_selected_provider(str(selected))

    def set_update_url_override(self, url: str | None) -> None:
        self.store.set_update_url_override(url)

    def set_providers_url_override(self, url: str | None) -> None:
        self.store.set_providers_url_override(url)

    def get_provider_endpoint(self, provider: Provider) -> ProviderEndpoint:
        return resolve_provider_endpoint(provider, self.environment, self.dev_overrides())

    def settings_view(self) -> SettingsView:
        selected = self.get_selected_provider()
        keys = {
            "selected_provider": self.store.selected_provider_key,
            "update_url_override": self.store.update_url_override_key,
        }
        providers_url_override = None
        if isinstance(self.source, RemoteProviderSource):
            keys["providers_url_override"] = self.store.providers_url_override_key
            providers_url_override = self.store.get_providers_url_override()
        return SettingsView(
            item_id=self.item_id,
            providers=self.get_providers() or [],
            selected_identifier=selected.identifier if selected else None,
            overrides_editable=self.environment == env.DEVELOPMENT,
            update_url_override=self.store.get_update_url_override(),
            providers_url_override=providers_url_override,
            option_keys=keys,
        )


def extract_api_error_message(body: str | bytes | None, item_id: str) -> str | None:
    """
    Pull the human-readable message out of an update-server error body.

    Returns None unless the body is an API error addressed to ``item_id``.
    """
    if not body:
        return None
    try:
        payload = json.loads(body)
    except (TypeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    item = payload.get("cptItem")
    error = payload.get("error")
    if payload.get("type") != API_ERROR_TYPE:
        return None
    if not isinstance(item, dict) or not isinstance(error, dict):
        return None
    if item.get("itemUniqueId") != item_id:
        return None
    message = error.get("message")
    return message if isinstance(message, str) and message else None


__all__ = ["UpdateClient", "SettingsView", "extract_api_error_message"]
