"""
updates_sdk.tier2_reliability.store
────────────────────────────────────
Durable key-value option storage. Holds the selected provider id, the
development override URLs and the cached provider list. Values are plain
JSON-compatible data.

Backends: in-process dict (tests/dev), JSON file on disk, or Redis.
Keys are namespaced per item through NamespacedStore so several items can
share one backend.

Configure via: CPTM_STORE_BACKEND=memory|file|redis, CPTM_STORE_PATH, REDIS_URL
"""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from updates_sdk.tier0_core.config import get_config
from updates_sdk.tier0_core.errors import ConfigurationError

SELECTED_PROVIDER_KEY_PREFIX = "cptmc_selected_provider_"
DEV_URL_OVERRIDE_KEY_PREFIX = "cptmc_dev_url_override_"
PROVIDERS_KEY_PREFIX = "cptmc_providers_"
PROVIDERS_URL_OVERRIDE_KEY_PREFIX = "cptmc_providers_url_override_"


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store for tests and local dev."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStore:
    """
    JSON-file store. The whole document is rewritten on every change
    through a temp file and os.replace, so readers never see a torn file.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path or get_config().store_path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        with self._path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ConfigurationError(
                detail=f"Option store {self._path} does not contain a JSON object",
            )
        return data

    def _dump(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".options-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)


class RedisStore:
    """Redis-backed store. Values are stored JSON-encoded."""

    def __init__(self, url: str | None = None) -> None:
        import redis
        self._redis = redis.from_url(url or get_config().redis_url, decode_responses=True)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._redis.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._redis.set(key, json.dumps(value))

    def delete(self, key: str) -> None:
        self._redis.delete(key)


class NamespacedStore:
    """
    Per-item view over a shared store. Exposes the four option slots the
    engine uses; key names are ``<prefix><item_id>``.
    """

    def __init__(self, store: KeyValueStore, item_id: str) -> None:
        if not item_id:
            raise ConfigurationError(detail="item_id must be a non-empty string")
        self._store = store
        self.item_id = item_id

    @property
    def backend(self) -> KeyValueStore:
        return self._store

    @property
    def selected_provider_key(self) -> str:
        return SELECTED_PROVIDER_KEY_PREFIX + self.item_id

    @property
    def update_url_override_key(self) -> str:
        return DEV_URL_OVERRIDE_KEY_PREFIX + self.item_id

    @property
    def providers_key(self) -> str:
        return PROVIDERS_KEY_PREFIX + self.item_id

    @property
    def providers_url_override_key(self) -> str:
        return PROVIDERS_URL_OVERRIDE_KEY_PREFIX + self.item_id

    # ── selection ──────────────────────────────────────────────────────────

    def get_selected_provider_id(self) -> str | None:
        value = self._store.get(self.selected_provider_key)
        return value if isinstance(value, str) else None

    def set_selected_provider_id(self, identifier: str) -> None:
        self._store.set(self.selected_provider_key, identifier)

    # ── development overrides ──────────────────────────────────────────────

    def get_update_url_override(self) -> str | None:
        return _non_empty_str(self._store.get(self.update_url_override_key))

    def set_update_url_override(self, url: str | None) -> None:
        _set_or_delete(self._store, self.update_url_override_key, url)

    def get_providers_url_override(self) -> str | None:
        return _non_empty_str(self._store.get(self.providers_url_override_key))

    def set_providers_url_override(self, url: str | None) -> None:
        _set_or_delete(self._store, self.providers_url_override_key, url)

    # ── provider list cache ────────────────────────────────────────────────

    def get_providers_cache(self) -> dict[str, Any] | None:
        value = self._store.get(self.providers_key)
        return value if isinstance(value, dict) else None

    def set_providers_cache(self, document: dict[str, Any]) -> None:
        self._store.set(self.providers_key, document)

    def delete_providers_cache(self) -> None:
        self._store.delete(self.providers_key)


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _set_or_delete(store: KeyValueStore, key: str, value: str | None) -> None:
    if value:
        store.set(key, value)
    else:
        store.delete(key)


# ── Provider registry ─────────────────────────────────────────────────────────

_store: KeyValueStore | None = None


def get_store() -> KeyValueStore:
    global _store
    if _store is not None:
        return _store

    backend = get_config().store_backend.lower()
    if backend in ("memory", "mock"):
        _store = MemoryStore()
    elif backend == "file":
        _store = FileStore()
    elif backend == "redis":
        _store = RedisStore()
    else:
        raise ConfigurationError(
            detail=f"Unknown CPTM_STORE_BACKEND: {backend!r}. Supported: memory, file, redis",
        )
    return _store


def _reset_store() -> None:
    global _store
    _store = None


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    "RedisStore",
    "NamespacedStore",
    "get_store",
]
