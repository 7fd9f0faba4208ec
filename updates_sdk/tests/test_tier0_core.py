"""Tests for tier0_core modules."""
from __future__ import annotations

import pytest

from updates_sdk.tier0_core.errors import (
    ConfigurationError,
    FetchFailure,
    InvalidSelectionRequest,
    ResolutionMiss,
    SdkError,
)
from updates_sdk.tier0_core.models import Provider, ProviderEndpoint


# ── errors ─────────────────────────────────────────────────────────────────

class TestErrors:
    def test_sdk_error_has_code(self):
        e = SdkError("SDK_ERROR", user_message="Something broke")
        assert e.code == "SDK_ERROR"
        assert "Something broke" in str(e)

    def test_configuration_error_is_fatal(self):
        e = ConfigurationError(detail="empty provider list")
        assert isinstance(e, SdkError)
        assert e.recoverable is False
        assert e.code == "configuration_error"
        assert "empty provider list" in str(e)

    def test_recoverable_errors(self):
        for cls in (ResolutionMiss, FetchFailure, InvalidSelectionRequest):
            assert cls().recoverable is True

    def test_fetch_failure_keeps_url(self):
        e = FetchFailure(detail="boom", url="https://vendor.example/p.json")
        assert e.url == "https://vendor.example/p.json"

    def test_to_dict_hides_detail(self):
        e = ResolutionMiss(detail="internal detail", reason="provider_disabled")
        d = e.to_dict()
        assert d["error"]["code"] == "resolution_miss"
        assert "internal detail" not in d["error"]["message"]
        assert e.reason == "provider_disabled"


# ── logging ────────────────────────────────────────────────────────────────

class TestLogging:
    def test_item_context_is_scoped(self):
        import structlog
        from updates_sdk.tier0_core.logging import item_context
        structlog.contextvars.clear_contextvars()
        with item_context("my-plugin", phase="init"):
            assert structlog.contextvars.get_contextvars() == {
                "item_id": "my-plugin",
                "phase": "init",
            }
        assert structlog.contextvars.get_contextvars() == {}

    def test_item_bound_logger_accepts_event_names(self):
        from updates_sdk.tier0_core.logging import get_logger
        log = get_logger("updates_sdk.tests", item_id="my-plugin")
        log.info("providers.refresh.ok", event_name="cptmc_update_providers_my-plugin", count=1)
        log.debug("scheduler.registered", event_name="cptmc_update_providers_my-plugin")


# ── config ─────────────────────────────────────────────────────────────────

class TestConfig:
    def test_defaults(self, monkeypatch):
        from updates_sdk.tier0_core.config import SdkConfig
        monkeypatch.delenv("CPTM_ENV", raising=False)
        cfg = SdkConfig(_env_file=None)
        assert cfg.environment == "production"
        assert cfg.refresh_hour == 3
        assert cfg.timezone == "Asia/Tokyo"
        assert cfg.update_url_env_var == "CPTM_CLIENT_UPDATE_URL"
        assert cfg.providers_url_env_var == "CPTM_CLIENT_PROVIDERS_URL"

    def test_environment_from_env(self, monkeypatch):
        from updates_sdk.tier0_core.config import _reset_config, get_config
        monkeypatch.setenv("CPTM_ENV", "Staging")
        _reset_config()
        assert get_config().environment == "staging"

    def test_unknown_environment_rejected(self, monkeypatch):
        from pydantic import ValidationError
        from updates_sdk.tier0_core.config import SdkConfig
        monkeypatch.setenv("CPTM_ENV", "qa")
        with pytest.raises(ValidationError):
            SdkConfig(_env_file=None)

    def test_refresh_hour_bounds(self, monkeypatch):
        from pydantic import ValidationError
        from updates_sdk.tier0_core.config import SdkConfig
        monkeypatch.setenv("CPTM_REFRESH_HOUR", "24")
        with pytest.raises(ValidationError):
            SdkConfig(_env_file=None)


# ── environment ────────────────────────────────────────────────────────────

class TestEnvironment:
    def test_normalize_unknown_to_production(self):
        from updates_sdk.tier0_core.environment import normalize_environment
        assert normalize_environment("DEVELOPMENT") == "development"
        assert normalize_environment("local") == "production"
        assert normalize_environment(None) == "production"

    def test_env_provider_reads_config_and_os_environ(self, monkeypatch):
        from updates_sdk.tier0_core.config import _reset_config
        from updates_sdk.tier0_core.environment import EnvEnvironmentProvider
        monkeypatch.setenv("CPTM_ENV", "development")
        monkeypatch.setenv("CPTM_CLIENT_UPDATE_URL", "http://localhost:8000")
        _reset_config()
        provider = EnvEnvironmentProvider()
        assert provider.get_environment() == "development"
        assert provider.get_env_var("CPTM_CLIENT_UPDATE_URL") == "http://localhost:8000"
        assert provider.get_env_var("CPTM_NOT_SET") is None

    def test_mock_provider(self):
        from updates_sdk.tier0_core.environment import MockEnvironmentProvider
        provider = MockEnvironmentProvider("staging", {"A": "1"})
        assert provider.get_environment() == "staging"
        assert provider.get_env_var("A") == "1"
        provider.set_env_var("A", None)
        assert provider.get_env_var("A") is None

    def test_factory_uses_backend(self, monkeypatch):
        from updates_sdk.tier0_core import environment
        monkeypatch.setenv("CPTM_ENVIRONMENT_BACKEND", "mock")
        environment.set_provider(None)
        assert isinstance(environment.get_provider(), environment.MockEnvironmentProvider)

    def test_factory_rejects_unknown_backend(self, monkeypatch):
        from updates_sdk.tier0_core import environment
        monkeypatch.setenv("CPTM_ENVIRONMENT_BACKEND", "consul")
        environment.set_provider(None)
        with pytest.raises(ConfigurationError):
            environment.get_provider()


# ── models ─────────────────────────────────────────────────────────────────

class TestProviderEndpoint:
    def test_display_text_defaults_to_site_url(self):
        endpoint = ProviderEndpoint("https://a.example", "https://a.example/api")
        assert endpoint.display_text == "https://a.example"

    def test_empty_display_text_defaults_to_site_url(self):
        endpoint = ProviderEndpoint("https://a.example", "https://a.example/api", "")
        assert endpoint.display_text == "https://a.example"

    def test_explicit_display_text(self):
        endpoint = ProviderEndpoint("https://a.example", "https://a.example/api", "Acme Store")
        assert endpoint.display_text == "Acme Store"

    def test_is_immutable(self):
        endpoint = ProviderEndpoint("https://a.example", "https://a.example/api")
        with pytest.raises(AttributeError):
            endpoint.api_url = "https://evil.example"  # type: ignore[misc]

    def test_to_dict(self):
        endpoint = ProviderEndpoint("https://a.example", "https://a.example/api")
        assert endpoint.to_dict() == {
            "siteUrl": "https://a.example",
            "apiUrl": "https://a.example/api",
            "displayText": "https://a.example",
        }

    def test_self_referential(self):
        endpoint = ProviderEndpoint.self_referential("http://localhost:8000")
        assert endpoint.site_url == endpoint.api_url == endpoint.display_text == "http://localhost:8000"


class TestProvider:
    def test_enabled_by_default(self, globex):
        assert globex.enabled is True
        assert globex.staging_endpoint is None

    def test_disable_is_one_way(self, globex):
        globex.disable()
        assert globex.enabled is False
        assert not hasattr(globex, "enable")

    def test_identifier_is_immutable(self, globex):
        with pytest.raises(AttributeError):
            globex.identifier = "other"  # type: ignore[misc]

    def test_empty_identifier_rejected(self):
        with pytest.raises(ConfigurationError):
            Provider("", ProviderEndpoint("https://a.example", "https://a.example/api"))

    def test_production_endpoint_required(self):
        with pytest.raises(ConfigurationError):
            Provider("acme", None)  # type: ignore[arg-type]

    def test_to_dict(self, acme):
        d = acme.to_dict()
        assert d["identifier"] == "acme"
        assert d["productionEndpoint"]["apiUrl"] == "https://a.example/api"
        assert d["stagingEndpoint"]["apiUrl"] == "https://staging.a.example/api"
        assert d["enabled"] is True

    def test_identity_equality(self):
        endpoint = ProviderEndpoint("https://a.example", "https://a.example/api")
        assert Provider("acme", endpoint) != Provider("acme", endpoint)
