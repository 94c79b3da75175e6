from bricks.db.pool import ConnectionPool
from bricks.domain.season import Season
from bricks.repos.player_stats_repo import SqlitePlayerStatsRepo
from tests.helpers import batting, make_game, make_row, pitching


class TestSqlitePlayerStatsRepo:
    def test_upsert_and_get_by_game(self, pool: ConnectionPool) -> None:
        repo = SqlitePlayerStatsRepo(pool)
        row = make_row("p1", batting(hits=2, at_bats=4))
        repo.upsert(row)
        assert repo.get_by_game("g1") == [row]

    def test_upsert_replaces_same_key(self, pool: ConnectionPool) -> None:
        repo = SqlitePlayerStatsRepo(pool)
        repo.upsert(make_row("p1", batting(hits=2, at_bats=4)))
        repo.upsert(make_row("p1", batting(hits=3, at_bats=4)))
        rows = repo.get_by_game("g1")
        assert len(rows) == 1
        assert rows[0].stats.hits == 3

    def test_same_player_on_two_teams_in_one_game(self, pool: ConnectionPool) -> None:
        repo = SqlitePlayerStatsRepo(pool)
        repo.upsert(make_row("p1", batting(hits=1, at_bats=2), team_id="AWY"))
        repo.upsert(make_row("p1", batting(hits=0, at_bats=2), team_id="HOM"))
        assert repo.count_by_game("g1") == 2

    def test_delete_by_game_spares_kept_rows(self, pool: ConnectionPool) -> None:
        repo = SqlitePlayerStatsRepo(pool)
        repo.upsert(make_row("p1", batting(at_bats=1)))
        repo.upsert(make_row("p2", batting(at_bats=1)))
        removed = repo.delete_by_game("g1", keep={("AWY", "p1")})
        assert removed == 1
        assert [r.player_id for r in repo.get_by_game("g1")] == ["p1"]

    def test_delete_by_game_without_keep_removes_all(self, pool: ConnectionPool) -> None:
        repo = SqlitePlayerStatsRepo(pool)
        repo.upsert(make_row("p1", batting(at_bats=1)))
        assert repo.delete_by_game("g1") == 1
        assert repo.count_by_game("g1") == 0

    def test_queries_by_player_season_and_team(self, pool: ConnectionPool) -> None:
        repo = SqlitePlayerStatsRepo(pool)
        g1 = make_game("g1", day=1)
        g2 = make_game("g2", day=2)
        g3 = make_game("g3", season=2)
        repo.upsert(make_row("p1", batting(at_bats=1), game=g2))
        repo.upsert(make_row("p1", batting(at_bats=1), game=g1))
        repo.upsert(make_row("p2", pitching(outs=3), game=g1, team_id="HOM"))
        repo.upsert(make_row("p1", batting(at_bats=1), game=g3))

        season = Season("gamma", 1)
        assert [r.game_id for r in repo.get_by_player_season("p1", season)] == ["g1", "g2"]
        assert [r.game_id for r in repo.get_by_player("p1")] == ["g1", "g2", "g3"]
        assert len(repo.get_by_season(season)) == 3
        assert [r.player_id for r in repo.get_by_team_season("HOM", season)] == ["p2"]
        assert repo.player_ids_by_season(season) == ["p1", "p2"]
        assert repo.all_player_ids() == ["p1", "p2"]

    def test_counters_survive_storage(self, pool: ConnectionPool) -> None:
        repo = SqlitePlayerStatsRepo(pool)
        stats = batting(hits=1, at_bats=3, doubles=1, walks=1) + pitching(outs=7, earned_runs=2)
        repo.upsert(make_row("p1", stats))
        assert repo.get_by_game("g1")[0].stats == stats
