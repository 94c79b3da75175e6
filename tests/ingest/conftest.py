import pytest

from bricks.cache.computation_cache import ComputationCache
from bricks.cache.sqlite_store import SqliteCacheStore
from bricks.codec import GzipCodec
from bricks.db.pool import ConnectionPool
from bricks.ingest.ingestor import Ingestor
from bricks.rebuild import RebuildCoordinator
from bricks.repos.debug_log_repo import SqliteDebugLogRepo
from bricks.repos.game_repo import SqliteGameRepo
from bricks.repos.player_stats_repo import SqlitePlayerStatsRepo


@pytest.fixture
def cache(pool: ConnectionPool) -> ComputationCache:
    return ComputationCache(SqliteCacheStore(pool), RebuildCoordinator(), codec=GzipCodec())


@pytest.fixture
def ingestor(pool: ConnectionPool, cache: ComputationCache) -> Ingestor:
    return Ingestor(
        pool,
        SqliteGameRepo(pool),
        SqlitePlayerStatsRepo(pool),
        SqliteDebugLogRepo(pool),
        cache,
    )
