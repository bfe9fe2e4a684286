"""
cas_bridge.cache

Cache collaborator used by the service registry and the signing key resolver.

Responsibilities:
- Define the minimal `get`/`set` contract the core depends on.
- Provide a process-local, lock-guarded implementation.
"""

from __future__ import annotations

import threading
from typing import Any, Protocol


class Cache(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryCache:
    """
    Dict-backed cache with no expiry. Eviction, if any, is the owner's concern.
    """

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


# --- Module Notes -----------------------------------------------------------
# Cached values are idempotent and recomputable: two requests racing on a cold
# key both fetch and the last write wins.
