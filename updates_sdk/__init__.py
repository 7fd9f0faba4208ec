"""
updates_sdk
───────────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
__version__ = "0.1.0"

from updates_sdk.tier0_core.logging import get_logger
from updates_sdk.tier0_core.errors import (
    SdkError,
    ConfigurationError,
    ResolutionMiss,
    FetchFailure,
    InvalidSelectionRequest,
)
from updates_sdk.tier0_core.config import get_config, SdkConfig
from updates_sdk.tier0_core.environment import (
    EnvironmentProvider,
    EnvEnvironmentProvider,
    MockEnvironmentProvider,
    get_environment,
)
from updates_sdk.tier0_core.models import Provider, ProviderEndpoint

from updates_sdk.tier2_reliability.store import (
    KeyValueStore,
    MemoryStore,
    FileStore,
    RedisStore,
    NamespacedStore,
    get_store,
)
from updates_sdk.tier2_reliability.scheduler import (
    SchedulerProvider,
    InProcessScheduler,
    MockScheduler,
)

from updates_sdk.tier3_platform.http import HttpFetcher, HttpxFetcher, MockHttpFetcher
from updates_sdk.tier3_platform.sources import (
    ProviderSource,
    StaticProviderSource,
    RemoteProviderSource,
)
from updates_sdk.tier3_platform.selection import resolve_selected_provider, set_selected_provider
from updates_sdk.tier3_platform.resolution import (
    DevOverrides,
    resolve_endpoint,
    resolve_provider_endpoint,
    register_url_filter,
    url_filter,
)

from updates_sdk.client import UpdateClient, SettingsView, extract_api_error_message

__all__ = [
    # logging
    "get_logger",
    # errors
    "SdkError", "ConfigurationError", "ResolutionMiss",
    "FetchFailure", "InvalidSelectionRequest",
    # config
    "get_config", "SdkConfig",
    # environment
    "EnvironmentProvider", "EnvEnvironmentProvider", "MockEnvironmentProvider",
    "get_environment",
    # models
    "Provider", "ProviderEndpoint",
    # store
    "KeyValueStore", "MemoryStore", "FileStore", "RedisStore",
    "NamespacedStore", "get_store",
    # scheduler
    "SchedulerProvider", "InProcessScheduler", "MockScheduler",
    # http
    "HttpFetcher", "HttpxFetcher", "MockHttpFetcher",
    # sources
    "ProviderSource", "StaticProviderSource", "RemoteProviderSource",
    # selection
    "resolve_selected_provider", "set_selected_provider",
    # resolution
    "DevOverrides", "resolve_endpoint", "resolve_provider_endpoint",
    "register_url_filter", "url_filter",
    # client
    "UpdateClient", "SettingsView", "extract_api_error_message",
]
