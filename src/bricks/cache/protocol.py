from __future__ import annotations

from typing import Protocol

from bricks.domain.cache_entry import CacheEntry


class CacheStore(Protocol):
    def get(self, kind: str, key: bytes, at: float) -> CacheEntry | None: ...

    def entries(self, kind: str, key: bytes) -> list[CacheEntry]: ...

    def put(self, entry: CacheEntry, *, computed_at: float | None = None) -> bool: ...

    def supersede(self, kind: str, key: bytes, at: float) -> int: ...

    def evict_before(self, cutoff: float) -> int: ...
