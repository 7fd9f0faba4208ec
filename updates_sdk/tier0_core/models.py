"""
updates_sdk.tier0_core.models
──────────────────────────────
Provider and endpoint value objects. Endpoints are frozen; a Provider is
frozen too except for its enabled flag, which can only be switched off.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from updates_sdk.tier0_core.errors import ConfigurationError


@dataclass(frozen=True)
class ProviderEndpoint:
    """
    Where a provider can be reached.

    site_url is the human-facing selling site, api_url is queried for update
    metadata (usually the same host). display_text falls back to site_url.
    """

    site_url: str
    api_url: str
    display_text: str = ""

    def __post_init__(self) -> None:
        if not self.display_text:
            object.__setattr__(self, "display_text", self.site_url)

    @classmethod
    def self_referential(cls, url: str) -> "ProviderEndpoint":
        """Endpoint whose site, API and display values are all ``url``."""
        return cls(site_url=url, api_url=url, display_text=url)

    def to_dict(self) -> dict[str, str]:
        return {
            "siteUrl": self.site_url,
            "apiUrl": self.api_url,
            "displayText": self.display_text,
        }


@dataclass(frozen=True, eq=False)
class Provider:
    """A vendor offering update metadata for an item."""

    identifier: str
    production_endpoint: ProviderEndpoint
    staging_endpoint: ProviderEndpoint | None = None
    _enabled: bool = field(default=True, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.identifier, str) or not self.identifier:
            raise ConfigurationError(
                detail=f"provider identifier must be a non-empty string, got {self.identifier!r}",
            )
        if not isinstance(self.production_endpoint, ProviderEndpoint):
            raise ConfigurationError(
                detail=f"provider {self.identifier!r} needs a ProviderEndpoint for production",
            )
        if self.staging_endpoint is not None and not isinstance(
            self.staging_endpoint, ProviderEndpoint
        ):
            raise ConfigurationError(
                detail=f"provider {self.identifier!r} has an invalid staging endpoint",
            )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def disable(self) -> None:
        """Stop handling updates for this provider. There is no way back."""
        object.__setattr__(self, "_enabled", False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "productionEndpoint": self.production_endpoint.to_dict(),
            "stagingEndpoint": (
                self.staging_endpoint.to_dict() if self.staging_endpoint else None
            ),
            "enabled": self.enabled,
        }

    def __repr__(self) -> str:
        state = "" if self.enabled else ", disabled"
        return f"Provider({self.identifier!r}{state})"


__all__ = ["ProviderEndpoint", "Provider"]
