"""
updates_sdk.tier0_core.environment
───────────────────────────────────
Deployment environment source. Reports whether the host runs in
development, staging or production and exposes environment-level override
values (e.g. CPTM_CLIENT_UPDATE_URL) to the resolution engine.

Select via: CPTM_ENVIRONMENT_BACKEND=env|mock
"""
from __future__ import annotations

import os
from typing import Protocol, runtime_checkable

from updates_sdk.tier0_core.config import ENVIRONMENTS, get_config
from updates_sdk.tier0_core.errors import ConfigurationError

DEVELOPMENT = "development"
STAGING = "staging"
PRODUCTION = "production"


def normalize_environment(value: str | None) -> str:
    """Map an arbitrary environment label onto one of the three known ones."""
    label = (value or "").strip().lower()
    if label in ENVIRONMENTS:
        return label
    return PRODUCTION


# ── Protocol ───────────────────────────────────────────────────────────────

@runtime_checkable
class EnvironmentProvider(Protocol):
    """Reports the deployment environment and environment-level overrides."""

    def get_environment(self) -> str: ...

    def get_env_var(self, name: str) -> str | None: ...


# ── Env-var provider ───────────────────────────────────────────────────────

class EnvEnvironmentProvider:
    """
    Read the environment name from SdkConfig (CPTM_ENV) and override values
    straight from os.environ, so a shell export takes effect without a
    config reload.
    """

    def get_environment(self) -> str:
        return normalize_environment(get_config().environment)

    def get_env_var(self, name: str) -> str | None:
        return os.environ.get(name)


class MockEnvironmentProvider:
    """In-memory provider for tests. Seed via constructor."""

    def __init__(
        self,
        environment: str = PRODUCTION,
        env_vars: dict[str, str] | None = None,
    ) -> None:
        self.environment = normalize_environment(environment)
        self._env_vars: dict[str, str] = dict(env_vars or {})

    def get_environment(self) -> str:
        return self.environment

    def get_env_var(self, name: str) -> str | None:
        return self._env_vars.get(name)

    def set_env_var(self, name: str, value: str | None) -> None:
        if value is None:
            self._env_vars.pop(name, None)
        else:
            self._env_vars[name] = value


# ── Provider factory ───────────────────────────────────────────────────────

_provider: EnvironmentProvider | None = None


def get_provider() -> EnvironmentProvider:
    global _provider
    if _provider is not None:
        return _provider

    backend = os.environ.get("CPTM_ENVIRONMENT_BACKEND", "env").lower()

    if backend == "env":
        _provider = EnvEnvironmentProvider()
    elif backend == "mock":
        _provider = MockEnvironmentProvider()
    else:
        raise ConfigurationError(
            detail=f"Unknown CPTM_ENVIRONMENT_BACKEND: {backend!r}. Supported: env, mock",
        )
    return _provider


def set_provider(provider: EnvironmentProvider | None) -> None:
    """Replace the process-wide provider (None resets to the factory default)."""
    global _provider
    _provider = provider


# ── Public API ─────────────────────────────────────────────────────────────

def get_environment() -> str:
    """Return development, staging or production."""
    return get_provider().get_environment()


def get_env_var(name: str) -> str | None:
    """Return an environment-level override value, or None when unset."""
    return get_provider().get_env_var(name)


__all__ = [
    "DEVELOPMENT",
    "STAGING",
    "PRODUCTION",
    "normalize_environment",
    "EnvironmentProvider",
    "EnvEnvironmentProvider",
    "MockEnvironmentProvider",
    "get_provider",
    "set_provider",
    "get_environment",
    "get_env_var",
]
