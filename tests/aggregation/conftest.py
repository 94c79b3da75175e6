import pytest

from bricks.aggregation.aggregator import Aggregator
from bricks.codec import GzipCodec
from bricks.db.pool import ConnectionPool
from bricks.repos.debug_log_repo import SqliteDebugLogRepo
from bricks.repos.game_repo import SqliteGameRepo
from bricks.repos.player_stats_repo import SqlitePlayerStatsRepo


@pytest.fixture
def aggregator(pool: ConnectionPool) -> Aggregator:
    return Aggregator(SqliteGameRepo(pool), SqlitePlayerStatsRepo(pool), SqliteDebugLogRepo(pool), GzipCodec())
