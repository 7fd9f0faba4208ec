"""
updates_sdk.tier1_runtime.validate
───────────────────────────────────
Provider-list wire format validation via Pydantic v2.

The document is a JSON object keyed by provider identifier:

    {
      "acme": {
        "productionEndpoint": {"siteUrl": "...", "apiUrl": "..."},
        "stagingEndpoint": {"siteUrl": "...", "apiUrl": "..."},   # optional
        "enabled": true                                            # optional
      }
    }

Malformed entries are skipped one by one; a malformed staging endpoint is
dropped without rejecting the entry. Callers decide what an empty result
means.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    ValidationError as PydanticValidationError,
    field_validator,
)

from updates_sdk.tier0_core.logging import get_logger
from updates_sdk.tier0_core.models import Provider, ProviderEndpoint

log = get_logger(__name__)


class EndpointRecord(BaseModel):
    """A single endpoint as it appears on the wire."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    site_url: StrictStr = Field(
        min_length=1,
        validation_alias=AliasChoices("siteUrl", "siteurl"),
        serialization_alias="siteUrl",
    )
    api_url: StrictStr = Field(
        min_length=1,
        validation_alias=AliasChoices("apiUrl", "apiurl"),
        serialization_alias="apiUrl",
    )
    display_text: str = Field(
        default="",
        validation_alias=AliasChoices("displayText", "displaytext"),
        serialization_alias="displayText",
    )

    def to_endpoint(self) -> ProviderEndpoint:
        return ProviderEndpoint(self.site_url, self.api_url, self.display_text)


class ProviderRecord(BaseModel):
    """One provider entry, keyed externally by its identifier."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    production_endpoint: EndpointRecord = Field(alias="productionEndpoint")
    staging_endpoint: EndpointRecord | None = Field(default=None, alias="stagingEndpoint")
    enabled: bool = True

    @field_validator("staging_endpoint", mode="before")
    @classmethod
    def drop_malformed_staging(cls, value: Any) -> Any:
        if value is None:
            return None
        try:
            return EndpointRecord.model_validate(value)
        except PydanticValidationError:
            return None

    @field_validator("enabled", mode="before")
    @classmethod
    def null_enabled_means_default(cls, value: Any) -> Any:
        return True if value is None else value

    def to_provider(self, identifier: str) -> Provider:
        provider = Provider(
            identifier,
            self.production_endpoint.to_endpoint(),
            self.staging_endpoint.to_endpoint() if self.staging_endpoint else None,
        )
        if not self.enabled:
            provider.disable()
        return provider

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class ParsedDocument:
    """Result of validating a provider-list document."""

    providers: list[Provider] = field(default_factory=list)
    wire: dict[str, Any] = field(default_factory=dict)
    skipped: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return bool(self.providers)


def parse_provider_document(raw: Mapping[str, Any]) -> ParsedDocument:
    """
    Validate every entry of a decoded provider-list mapping.

    Returns the valid providers in document order, the normalized mapping
    that is safe to cache, and the identifiers that were skipped with the
    first validation message for each.
    """
    parsed = ParsedDocument()
    for identifier, entry in raw.items():
        if not isinstance(identifier, str) or not identifier:
            parsed.skipped[str(identifier)] = "identifier must be a non-empty string"
            continue
        try:
            record = ProviderRecord.model_validate(entry)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            where = ".".join(str(loc) for loc in first["loc"])
            parsed.skipped[identifier] = f"{where}: {first['msg']}" if where else first["msg"]
            continue
        parsed.providers.append(record.to_provider(identifier))
        parsed.wire[identifier] = record.to_wire()

    for identifier, reason in parsed.skipped.items():
        log.warning("providers.entry.skipped", identifier=identifier, reason=reason)
    return parsed


__all__ = [
    "EndpointRecord",
    "ProviderRecord",
    "ParsedDocument",
    "parse_provider_document",
]
