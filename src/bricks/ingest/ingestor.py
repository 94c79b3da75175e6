import logging
import sqlite3
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from bricks.cache.computation_cache import ComputationCache
from bricks.cache.fingerprint import fingerprint
from bricks.db.pool import ConnectionPool
from bricks.domain.errors import IngestError
from bricks.domain.game import DebugLog, GameRecord, PlayerGameStats
from bricks.domain.result import Err, Ok, Result
from bricks.domain.season import DEFAULT_POSTSEASON_FIRST_DAY, Season, is_postseason_day
from bricks.exceptions import ComputationFailedError
from bricks.ingest.mappers import GameFeed
from bricks.repos.protocols import DebugLogRepo, GameRepo, PlayerStatsRepo
from bricks.services import cache_keys
from bricks.services.cache_keys import CacheKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestReport:
    game_id: str
    rows_written: int
    rows_removed: int
    status: str
    invalidated: int = 0

    @property
    def is_partial(self) -> bool:
        return self.status == "partial"


def _validate(game: GameRecord, player_stats: Sequence[PlayerGameStats]) -> str | None:
    seen: set[tuple[str, str]] = set()
    for row in player_stats:
        if row.game_id != game.game_id:
            return f"row for player {row.player_id} belongs to game {row.game_id}"
        if (row.sim, row.season, row.day) != (game.sim, game.season, game.day):
            return f"row for player {row.player_id} disagrees with the game's sim/season/day"
        if (row.team_id, row.player_id) in seen:
            return f"duplicate row for player {row.player_id} on team {row.team_id}"
        seen.add((row.team_id, row.player_id))
    return None


class Ingestor:
    """Stores one game's raw rows and invalidates every aggregate they feed.

    Ingesting the same ``game_id`` again replaces the game and its rows, so
    replaying a feed is harmless.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        game_repo: GameRepo,
        player_stats_repo: PlayerStatsRepo,
        debug_log_repo: DebugLogRepo,
        cache: ComputationCache,
        *,
        postseason_first_day: int = DEFAULT_POSTSEASON_FIRST_DAY,
    ) -> None:
        self._pool = pool
        self._game_repo = game_repo
        self._player_stats_repo = player_stats_repo
        self._debug_log_repo = debug_log_repo
        self._cache = cache
        self._postseason_first_day = postseason_first_day

    def ingest(
        self,
        game: GameRecord,
        player_stats: Sequence[PlayerGameStats],
        *,
        debug_log: DebugLog | None = None,
        source_detail: str = "",
    ) -> Result[IngestReport, IngestError]:
        problem = _validate(game, player_stats)
        if problem is not None:
            logger.error("Rejected game %s: %s", game.game_id, problem)
            return Err(IngestError(message=problem, game_id=game.game_id, source_detail=source_detail))

        previous_game = self._game_repo.get(game.game_id)
        previous_rows = self._player_stats_repo.get_by_game(game.game_id)
        previous_log = self._debug_log_repo.get(game.game_id)
        unchanged = (
            previous_game == game
            and set(previous_rows) == set(player_stats)
            and (debug_log is None or previous_log == debug_log)
        )

        t0 = time.perf_counter()
        try:
            with self._pool.transaction():
                self._game_repo.upsert(game)
                for row in player_stats:
                    self._player_stats_repo.upsert(row)
                removed = self._player_stats_repo.delete_by_game(
                    game.game_id, keep={(row.team_id, row.player_id) for row in player_stats}
                )
                if debug_log is not None:
                    self._debug_log_repo.upsert(debug_log)
        except sqlite3.Error as exc:
            logger.error("Storing game %s failed: %s", game.game_id, exc)
            return Err(IngestError(message=str(exc), game_id=game.game_id, source_detail=source_detail))

        invalidated = 0
        if not unchanged:
            keys = self._affected_keys(game, player_stats, previous_game, previous_rows)
            try:
                invalidated = self._invalidate(keys)
            except ComputationFailedError as exc:
                logger.error("Game %s stored but cache invalidation failed: %s", game.game_id, exc)
                return Err(IngestError(message=str(exc), game_id=game.game_id, source_detail=source_detail))

        if debug_log is not None:
            partial = debug_log.is_partial
        else:
            partial = previous_log is not None and previous_log.is_partial
        report = IngestReport(
            game_id=game.game_id,
            rows_written=len(player_stats),
            rows_removed=removed,
            status="partial" if partial else "success",
            invalidated=invalidated,
        )
        logger.info(
            "Ingested game %s (%d rows, %d removed, %d entries invalidated) in %.2fs",
            game.game_id,
            report.rows_written,
            report.rows_removed,
            invalidated,
            time.perf_counter() - t0,
        )
        if partial:
            logger.warning("Game %s ingested with a simulation error", game.game_id)
        return Ok(report)

    def ingest_feed(self, feed: GameFeed, *, source_detail: str = "") -> Result[IngestReport, IngestError]:
        return self.ingest(feed.game, feed.player_stats, debug_log=feed.debug_log, source_detail=source_detail)

    def ingest_many(
        self, feeds: Iterable[GameFeed], *, source_detail: str = ""
    ) -> list[Result[IngestReport, IngestError]]:
        """Ingest every feed; a failing game does not stop the batch."""
        results = [self.ingest_feed(feed, source_detail=source_detail) for feed in feeds]
        failed = sum(1 for r in results if isinstance(r, Err))
        if failed:
            logger.warning("%d of %d games failed to ingest", failed, len(results))
        return results

    def _affected_keys(
        self,
        game: GameRecord,
        player_stats: Sequence[PlayerGameStats],
        previous_game: GameRecord | None,
        previous_rows: Sequence[PlayerGameStats],
    ) -> list[CacheKey]:
        keys: list[CacheKey] = [cache_keys.game_stats(game.game_id)]
        games = [game] if previous_game is None else [game, previous_game]
        rows = [*player_stats, *previous_rows]

        scopes: set[tuple[Season, bool]] = {
            (g.season_scope, is_postseason_day(g.day, self._postseason_first_day)) for g in games
        }
        for season, postseason in sorted(scopes):
            in_scope = [row for row in rows if row.season_scope == season]
            players = sorted({row.player_id for row in in_scope})
            teams = {row.team_id for row in in_scope}
            teams.update(t for g in games for t in (g.away_team_id, g.home_team_id) if t is not None)
            keys.append(cache_keys.season_table(season, postseason))
            keys.extend(cache_keys.player_season_stats(p, season, postseason) for p in players)
            keys.extend(cache_keys.team_season_stats(t, season, postseason) for t in sorted(teams))
            if not postseason:
                # Averages move with every regular-season game, so every player's
                # relative stats for the season go stale with them
                keys.append(cache_keys.season_league_averages(season))
                keys.extend(
                    cache_keys.player_season_league_relative(p, season)
                    for p in self._player_stats_repo.player_ids_by_season(season)
                )
        keys.extend(cache_keys.player_career_stats(p) for p in sorted({row.player_id for row in rows}))
        return keys

    def _invalidate(self, keys: Sequence[CacheKey]) -> int:
        count = 0
        for kind, params in keys:
            self._cache.supersede(kind, fingerprint(**params))
            count += 1
        logger.debug("Superseded %d cache keys", count)
        return count
