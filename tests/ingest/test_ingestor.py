import sqlite3
from dataclasses import dataclass

from bricks.cache.computation_cache import ComputationCache
from bricks.cache.fingerprint import fingerprint
from bricks.db.pool import ConnectionPool
from bricks.domain.game import DebugLog
from bricks.domain.result import Err, Ok
from bricks.domain.season import Season
from bricks.ingest.ingestor import Ingestor
from bricks.ingest.mappers import GameFeed
from bricks.repos.debug_log_repo import SqliteDebugLogRepo
from bricks.repos.game_repo import SqliteGameRepo
from bricks.repos.player_stats_repo import SqlitePlayerStatsRepo
from bricks.serialization import EnvelopeSerializer
from bricks.services import cache_keys
from tests.helpers import batting, make_game, make_row, pitching


class BrokenDebugLogRepo(SqliteDebugLogRepo):
    def upsert(self, log: DebugLog) -> None:
        raise sqlite3.OperationalError("disk I/O error")


@dataclass(frozen=True)
class Marker:
    value: int


def _rows(game_id: str = "g1") -> list:
    game = make_game(game_id)
    return [
        make_row("p1", batting(hits=2, at_bats=4), game=game),
        make_row("p2", pitching(outs=27), game=game, team_id="HOM"),
    ]


class TestIngest:
    def test_stores_game_and_rows(self, ingestor: Ingestor, pool: ConnectionPool) -> None:
        result = ingestor.ingest(make_game("g1"), _rows())
        assert isinstance(result, Ok)
        assert result.value.rows_written == 2
        assert result.value.status == "success"
        assert SqlitePlayerStatsRepo(pool).count_by_game("g1") == 2

    def test_reingest_is_idempotent(self, ingestor: Ingestor, pool: ConnectionPool) -> None:
        ingestor.ingest(make_game("g1"), _rows())
        before = SqlitePlayerStatsRepo(pool).get_by_game("g1")
        result = ingestor.ingest(make_game("g1"), _rows())
        assert isinstance(result, Ok)
        assert result.value.rows_removed == 0
        assert result.value.invalidated == 0
        assert SqlitePlayerStatsRepo(pool).get_by_game("g1") == before

    def test_reingest_removes_stale_rows(self, ingestor: Ingestor, pool: ConnectionPool) -> None:
        ingestor.ingest(make_game("g1"), _rows())
        result = ingestor.ingest(make_game("g1"), _rows()[:1])
        assert isinstance(result, Ok)
        assert result.value.rows_removed == 1
        assert [r.player_id for r in SqlitePlayerStatsRepo(pool).get_by_game("g1")] == ["p1"]

    def test_rejects_rows_from_another_game(self, ingestor: Ingestor, pool: ConnectionPool) -> None:
        result = ingestor.ingest(make_game("g1"), _rows("g2"), source_detail="feed.json")
        assert isinstance(result, Err)
        assert result.error.game_id == "g1"
        assert result.error.source_detail == "feed.json"
        assert SqlitePlayerStatsRepo(pool).count_by_game("g1") == 0

    def test_rejects_duplicate_rows(self, ingestor: Ingestor) -> None:
        rows = _rows()
        result = ingestor.ingest(make_game("g1"), [rows[0], rows[0]])
        assert isinstance(result, Err)
        assert "duplicate" in result.error.message

    def test_debug_error_marks_partial(self, ingestor: Ingestor, pool: ConnectionPool) -> None:
        log = DebugLog(game_id="g1", log_payload=b"", error="pitcher vanished")
        result = ingestor.ingest(make_game("g1"), _rows(), debug_log=log)
        assert isinstance(result, Ok)
        assert result.value.is_partial
        assert SqliteDebugLogRepo(pool).get("g1") == log

    def test_store_failure_rolls_back_the_whole_game(self, pool: ConnectionPool, cache: ComputationCache) -> None:
        ingestor = Ingestor(
            pool,
            SqliteGameRepo(pool),
            SqlitePlayerStatsRepo(pool),
            BrokenDebugLogRepo(pool),
            cache,
        )
        log = DebugLog(game_id="g1", log_payload=b"", error=None)
        result = ingestor.ingest(make_game("g1"), _rows(), debug_log=log)
        assert isinstance(result, Err)
        assert "disk I/O error" in result.error.message
        assert SqliteGameRepo(pool).get("g1") is None
        assert SqlitePlayerStatsRepo(pool).count_by_game("g1") == 0

    def test_ingest_many_continues_past_failures(self, ingestor: Ingestor) -> None:
        good = GameFeed(game=make_game("g1"), player_stats=tuple(_rows()))
        bad = GameFeed(game=make_game("g2"), player_stats=tuple(_rows("g1")))
        results = ingestor.ingest_many([bad, good])
        assert isinstance(results[0], Err)
        assert isinstance(results[1], Ok)


class TestInvalidation:
    def test_ingest_supersedes_cached_aggregates(self, ingestor: Ingestor, cache: ComputationCache) -> None:
        ingestor.ingest(make_game("g1"), _rows())
        serializer = EnvelopeSerializer(Marker)
        season = Season("gamma", 1)
        kind, params = cache_keys.player_season_stats("p1", season, False)
        cache.get_or_compute(kind, params, lambda: Marker(1), serializer)
        assert cache.get(kind, fingerprint(**params)) is not None

        game = make_game("g2", day=2)
        result = ingestor.ingest(game, [make_row("p1", batting(hits=1, at_bats=3), game=game)])
        assert isinstance(result, Ok)
        assert result.value.invalidated > 0
        assert cache.get(kind, fingerprint(**params)) is None

    def test_relative_stats_of_other_players_are_superseded(
        self, ingestor: Ingestor, cache: ComputationCache
    ) -> None:
        ingestor.ingest(make_game("g1"), _rows())
        serializer = EnvelopeSerializer(Marker)
        kind, params = cache_keys.player_season_league_relative("p2", Season("gamma", 1))
        cache.get_or_compute(kind, params, lambda: Marker(1), serializer)

        game = make_game("g2", day=2)
        ingestor.ingest(game, [make_row("p1", batting(hits=1, at_bats=3), game=game)])
        assert cache.get(kind, fingerprint(**params)) is None

    def test_other_seasons_are_untouched(self, ingestor: Ingestor, cache: ComputationCache) -> None:
        serializer = EnvelopeSerializer(Marker)
        kind, params = cache_keys.season_table(Season("gamma", 7), False)
        cache.get_or_compute(kind, params, lambda: Marker(1), serializer)
        ingestor.ingest(make_game("g1"), _rows())
        assert cache.get(kind, fingerprint(**params)) is not None
