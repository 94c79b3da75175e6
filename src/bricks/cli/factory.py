from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from bricks.aggregation.aggregator import Aggregator
from bricks.cache.computation_cache import ComputationCache
from bricks.cache.sqlite_store import SqliteCacheStore
from bricks.codec import create_codec
from bricks.config import Settings
from bricks.db.pool import ConnectionPool
from bricks.domain.errors import ConfigError
from bricks.domain.result import Err, Ok, Result
from bricks.ingest.ingestor import Ingestor
from bricks.rebuild import RebuildCoordinator
from bricks.repos.debug_log_repo import SqliteDebugLogRepo
from bricks.repos.game_repo import SqliteGameRepo
from bricks.repos.meta_repo import SqliteMetaRepo
from bricks.repos.player_stats_repo import SqlitePlayerStatsRepo
from bricks.services.rebuild import Rebuilder
from bricks.services.stats_service import StatsService


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    pool: ConnectionPool
    coordinator: RebuildCoordinator
    cache: ComputationCache
    game_repo: SqliteGameRepo
    player_stats_repo: SqlitePlayerStatsRepo
    debug_log_repo: SqliteDebugLogRepo
    meta_repo: SqliteMetaRepo
    aggregator: Aggregator
    stats: StatsService
    ingestor: Ingestor
    rebuilder: Rebuilder


def validate_settings(settings: Settings) -> Result[Settings, ConfigError]:
    try:
        create_codec(settings.codec)
    except ValueError as e:
        return Err(ConfigError(message=str(e), key="cache.codec"))
    if settings.pool_size < 1:
        return Err(ConfigError(message="pool size must be at least 1", key="db.pool_size"))
    if settings.compute_timeout <= 0:
        return Err(ConfigError(message="compute timeout must be positive", key="cache.compute_timeout"))
    return Ok(settings)


@contextmanager
def build_app_context(settings: Settings, coordinator: RebuildCoordinator | None = None) -> Iterator[AppContext]:
    """Composition-root context manager: opens the connection pool, wires services, closes the pool."""
    codec = create_codec(settings.codec)
    pool = ConnectionPool(settings.db_path, size=settings.pool_size)
    try:
        coordinator = coordinator or RebuildCoordinator()
        cache = ComputationCache(
            SqliteCacheStore(pool),
            coordinator,
            codec=codec,
            compute_timeout=settings.compute_timeout,
            ttl_seconds=settings.ttl_seconds,
        )
        game_repo = SqliteGameRepo(pool)
        player_stats_repo = SqlitePlayerStatsRepo(pool)
        debug_log_repo = SqliteDebugLogRepo(pool)
        meta_repo = SqliteMetaRepo(pool)
        aggregator = Aggregator(
            game_repo,
            player_stats_repo,
            debug_log_repo,
            codec,
            postseason_first_day=settings.postseason_first_day,
        )
        stats = StatsService(cache, aggregator, settings.qualification)
        yield AppContext(
            settings=settings,
            pool=pool,
            coordinator=coordinator,
            cache=cache,
            game_repo=game_repo,
            player_stats_repo=player_stats_repo,
            debug_log_repo=debug_log_repo,
            meta_repo=meta_repo,
            aggregator=aggregator,
            stats=stats,
            ingestor=Ingestor(
                pool,
                game_repo,
                player_stats_repo,
                debug_log_repo,
                cache,
                postseason_first_day=settings.postseason_first_day,
            ),
            rebuilder=Rebuilder(coordinator, stats, game_repo, player_stats_repo, meta_repo),
        )
    finally:
        pool.close_all()
