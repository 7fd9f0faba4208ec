"""
updates_sdk test configuration.

All tests run with in-memory backends by default. No network access and no
files outside tmp_path are touched.
"""
from __future__ import annotations

import json
import os

import pytest

# ── Force in-memory backends for all tests ─────────────────────────────────
# These must be set before any updates_sdk modules are imported.

os.environ.setdefault("CPTM_ENV", "production")
os.environ.setdefault("CPTM_STORE_BACKEND", "memory")
os.environ.setdefault("CPTM_SCHEDULER_BACKEND", "mock")
os.environ.setdefault("CPTM_ENVIRONMENT_BACKEND", "mock")
os.environ.setdefault("CPTM_ERROR_BACKEND", "none")
os.environ.setdefault("CPTM_LOG_LEVEL", "WARNING")


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_module_singletons():
    """
    Reset cached singletons between tests so no state bleeds across them.
    """
    import updates_sdk.tier0_core.config as _config
    import updates_sdk.tier0_core.environment as _environment
    import updates_sdk.tier1_runtime.clock as _clock
    import updates_sdk.tier2_reliability.scheduler as _scheduler
    import updates_sdk.tier2_reliability.store as _store
    import updates_sdk.tier3_platform.http as _http
    import updates_sdk.tier3_platform.resolution as _resolution

    orig_clock = _clock.get_clock()

    yield

    _config._reset_config()
    _environment.set_provider(None)
    _clock.set_clock(orig_clock)
    _scheduler._reset_provider()
    _store._reset_store()
    _http._reset_fetcher()
    _resolution.clear_url_filters()


@pytest.fixture
def memory_store():
    from updates_sdk.tier2_reliability.store import MemoryStore
    return MemoryStore()


@pytest.fixture
def item_store(memory_store):
    """Namespaced view for the item ``my-plugin``."""
    from updates_sdk.tier2_reliability.store import NamespacedStore
    return NamespacedStore(memory_store, "my-plugin")


@pytest.fixture
def scheduler():
    from updates_sdk.tier2_reliability.scheduler import MockScheduler
    return MockScheduler()


@pytest.fixture
def fetcher():
    from updates_sdk.tier3_platform.http import MockHttpFetcher
    return MockHttpFetcher()


@pytest.fixture
def production_env():
    from updates_sdk.tier0_core.environment import MockEnvironmentProvider
    return MockEnvironmentProvider("production")


@pytest.fixture
def acme():
    from updates_sdk.tier0_core.models import Provider, ProviderEndpoint
    return Provider(
        "acme",
        ProviderEndpoint("https://a.example", "https://a.example/api"),
        ProviderEndpoint("https://staging.a.example", "https://staging.a.example/api"),
    )


@pytest.fixture
def globex():
    from updates_sdk.tier0_core.models import Provider, ProviderEndpoint
    return Provider(
        "globex",
        ProviderEndpoint("https://g.example", "https://g.example/api"),
    )


@pytest.fixture
def acme_document() -> str:
    return json.dumps({
        "acme": {
            "productionEndpoint": {
                "siteUrl": "https://a.example",
                "apiUrl": "https://a.example/api",
            }
        }
    })
