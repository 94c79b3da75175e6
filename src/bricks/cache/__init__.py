from bricks.cache.computation_cache import CacheLookup, ComputationCache
from bricks.cache.protocol import CacheStore
from bricks.cache.sqlite_store import SqliteCacheStore

__all__ = ["CacheLookup", "CacheStore", "ComputationCache", "SqliteCacheStore"]
