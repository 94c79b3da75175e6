"""Get-or-compute cache over temporally versioned entries.

Values are addressed by ``(kind, fingerprint)`` and looked up by time: a
lookup at ``as_of`` returns the entry whose validity interval contains it. On
a miss the value is computed once per key across concurrent callers,
serialized, compressed and written with ``valid_from`` set to when the
computation started.

Usage:
    cache = ComputationCache(SqliteCacheStore(pool), coordinator, codec=GzipCodec())
    lookup = cache.get_or_compute(
        "player-season-stats",
        {"player_id": pid, "season": season},
        lambda: aggregator.compute_season_stats(pid, season),
        EnvelopeSerializer(DerivedSeasonStats),
    )
    stats = lookup.value
"""

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from bricks.cache.fingerprint import fingerprint
from bricks.cache.flight import SingleFlight
from bricks.codec import CodecError
from bricks.domain.cache_entry import CacheEntry
from bricks.exceptions import ComputationFailedError
from bricks.serialization import SerializationError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from bricks.cache.protocol import CacheStore
    from bricks.codec import Codec
    from bricks.rebuild import RebuildCoordinator
    from bricks.serialization import Serializer

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheLookup(Generic[T]):
    value: T
    cached: bool


class ComputationCache:
    def __init__(
        self,
        store: CacheStore,
        coordinator: RebuildCoordinator,
        *,
        codec: Codec,
        clock: Callable[[], float] = time.time,
        compute_timeout: float | None = 30.0,
        ttl_seconds: float | None = None,
    ) -> None:
        self._store = store
        self._coordinator = coordinator
        self._codec = codec
        self._clock = clock
        self._compute_timeout = compute_timeout
        self._ttl_seconds = ttl_seconds or None
        self._flights = SingleFlight()

    @property
    def coordinator(self) -> RebuildCoordinator:
        return self._coordinator

    def get(self, kind: str, key: bytes, as_of: float | None = None, *, require_fresh: bool = False) -> bytes | None:
        """Return the payload valid at ``as_of`` (default now), or None.

        With ``require_fresh`` nothing is returned while a rebuild is running,
        since entries may predate the data being rebuilt.
        """
        if require_fresh and self._coordinator.is_rebuilding:
            return None
        at = self._clock() if as_of is None else as_of
        try:
            entry = self._store.get(kind, key, at)
        except sqlite3.Error as e:
            raise ComputationFailedError(kind, f"cache read failed: {e}") from e
        if entry is None:
            return None
        try:
            return self._codec.decompress(entry.value)
        except CodecError as e:
            # Written under another codec; treated as a miss and overwritten
            logger.warning("Failed to decompress cached %s: %s", kind, e)
            return None

    def put(self, kind: str, key: bytes, valid_from: float, valid_to: float | None, value: bytes) -> bool:
        """Store ``value`` as authoritative over ``[valid_from, valid_to)``."""
        return self._write(kind, key, valid_from, valid_to, value)

    def _write(
        self,
        kind: str,
        key: bytes,
        valid_from: float,
        valid_to: float | None,
        value: bytes,
        *,
        computed_at: float | None = None,
    ) -> bool:
        entry = CacheEntry(
            kind=kind,
            key=key,
            value=self._codec.compress(value),
            valid_from=valid_from,
            valid_to=valid_to,
        )
        try:
            return self._store.put(entry, computed_at=computed_at)
        except sqlite3.Error as e:
            raise ComputationFailedError(kind, f"cache write failed: {e}") from e

    def supersede(self, kind: str, key: bytes, at: float | None = None) -> int:
        """End whatever entry is valid now; values computed earlier will not be stored."""
        when = self._clock() if at is None else at
        try:
            return self._store.supersede(kind, key, when)
        except sqlite3.Error as e:
            raise ComputationFailedError(kind, f"cache invalidation failed: {e}") from e

    def get_or_compute(
        self,
        kind: str,
        params: Mapping[str, Any],
        compute: Callable[[], T],
        serializer: Serializer[T],
        *,
        as_of: float | None = None,
        require_fresh: bool = False,
    ) -> CacheLookup[T]:
        key = fingerprint(**params)

        hit = self._load(kind, key, serializer, as_of=as_of, require_fresh=require_fresh)
        if hit is not None:
            logger.debug("Cache hit for %s %s", kind, dict(params))
            return CacheLookup(hit, cached=True)

        def leader() -> CacheLookup[T]:
            # A flight that finished between our miss and now may have stored it
            again = self._load(kind, key, serializer, as_of=as_of, require_fresh=require_fresh)
            if again is not None:
                return CacheLookup(again, cached=True)
            logger.debug("Cache miss for %s %s; computing", kind, dict(params))
            return CacheLookup(self._compute_and_store(kind, key, compute, serializer), cached=False)

        return self._flights.run((kind, key), leader, timeout=self._compute_timeout)

    def refresh(
        self,
        kind: str,
        params: Mapping[str, Any],
        compute: Callable[[], T],
        serializer: Serializer[T],
    ) -> T:
        """Recompute and store unconditionally, superseding whatever is cached."""
        key = fingerprint(**params)
        return self._flights.run(
            (kind, key),
            lambda: self._compute_and_store(kind, key, compute, serializer),
            timeout=self._compute_timeout,
        )

    def _load(
        self,
        kind: str,
        key: bytes,
        serializer: Serializer[T],
        *,
        as_of: float | None,
        require_fresh: bool,
    ) -> T | None:
        payload = self.get(kind, key, as_of, require_fresh=require_fresh)
        if payload is None:
            return None
        try:
            return serializer.deserialize(payload)
        except SerializationError as e:
            # Unreadable entries are treated as misses and overwritten
            logger.warning("Failed to deserialize cached %s: %s", kind, e)
            return None

    def _compute_and_store(
        self,
        kind: str,
        key: bytes,
        compute: Callable[[], T],
        serializer: Serializer[T],
    ) -> T:
        started = self._clock()
        value = compute()
        valid_to = started + self._ttl_seconds if self._ttl_seconds is not None else None
        if not self._write(kind, key, started, valid_to, serializer.serialize(value), computed_at=started):
            logger.debug("Not caching %s: inputs changed while computing", kind)
        return value
