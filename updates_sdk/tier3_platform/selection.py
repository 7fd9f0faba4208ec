"""
updates_sdk.tier3_platform.selection
─────────────────────────────────────
Which provider is authoritative for an item.

A sole provider is picked automatically unless the user previously chose a
different one that has since vanished; with several providers the user must
choose. A vanished choice is never silently replaced, so the host can prompt
for a new one.
"""
from __future__ import annotations

from typing import Sequence

from updates_sdk.tier0_core.errors import InvalidSelectionRequest
from updates_sdk.tier0_core.logging import get_logger
from updates_sdk.tier0_core.models import Provider
from updates_sdk.tier2_reliability.store import NamespacedStore

log = get_logger(__name__)


def find_provider(providers: Sequence[Provider] | None, identifier: str | None) -> Provider | None:
    if not providers or not identifier:
        return None
    for provider in providers:
        if provider.identifier == identifier:
            return provider
    return None


def resolve_selected_provider(
    providers: Sequence[Provider] | None,
    persisted_selection_id: str | None,
) -> Provider | None:
    """Return the selected provider, or None when a choice is still required."""
    if not providers:
        return None

    if len(providers) == 1:
        only = providers[0]
        if not persisted_selection_id:
            return only
        if only.identifier == persisted_selection_id:
            return only
        # previously selected provider is gone
        return None

    if not persisted_selection_id:
        return None
    return find_provider(providers, persisted_selection_id)


def set_selected_provider(
    store: NamespacedStore,
    providers: Sequence[Provider] | None,
    candidate_id: str,
    *,
    strict: bool = False,
) -> bool:
    """
    Persist ``candidate_id`` as the selection if it names a current provider.

    Unknown identifiers leave the store untouched and return False, or raise
    InvalidSelectionRequest when ``strict`` is set.
    """
    if find_provider(providers, candidate_id) is None:
        log.debug(
            "selection.rejected",
            item_id=store.item_id,
            identifier=candidate_id,
        )
        if strict:
            raise InvalidSelectionRequest(
                detail=f"Provider {candidate_id!r} is not available for {store.item_id!r}",
                identifier=candidate_id,
            )
        return False

    store.set_selected_provider_id(candidate_id)
    log.info("selection.saved", item_id=store.item_id, identifier=candidate_id)
    return True


__all__ = ["find_provider", "resolve_selected_provider", "set_selected_provider"]
