import json
import sqlite3

from bricks.db.pool import ConnectionPool
from bricks.domain.game import PlayerGameStats
from bricks.domain.season import Season
from bricks.domain.stats import stats_from_dict, stats_to_dict


class SqlitePlayerStatsRepo:
    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def upsert(self, stats: PlayerGameStats) -> None:
        with self._pool.transaction() as conn:
            conn.execute(
                """INSERT INTO player_stats (game_id, team_id, player_id, sim, season, day, stats_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(game_id, team_id, player_id) DO UPDATE SET
                       sim=excluded.sim, season=excluded.season, day=excluded.day,
                       stats_json=excluded.stats_json""",
                (
                    stats.game_id,
                    stats.team_id,
                    stats.player_id,
                    stats.sim,
                    stats.season,
                    stats.day,
                    json.dumps(stats_to_dict(stats.stats), sort_keys=True),
                ),
            )

    def delete_by_game(self, game_id: str, *, keep: set[tuple[str, str]] | None = None) -> int:
        """Delete a game's rows, sparing ``(team_id, player_id)`` pairs in ``keep``."""
        spared = keep or set()
        with self._pool.transaction() as conn:
            rows = conn.execute(
                "SELECT team_id, player_id FROM player_stats WHERE game_id = ?", (game_id,)
            ).fetchall()
            doomed = [
                (row["team_id"], row["player_id"])
                for row in rows
                if (row["team_id"], row["player_id"]) not in spared
            ]
            conn.executemany(
                "DELETE FROM player_stats WHERE game_id = ? AND team_id = ? AND player_id = ?",
                [(game_id, team_id, player_id) for team_id, player_id in doomed],
            )
        return len(doomed)

    def _select(self, sql: str, params: tuple[object, ...]) -> list[PlayerGameStats]:
        with self._pool.connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_stats(row) for row in rows]

    def get_by_game(self, game_id: str) -> list[PlayerGameStats]:
        return self._select("SELECT * FROM player_stats WHERE game_id = ? ORDER BY rowid", (game_id,))

    def get_by_player(self, player_id: str) -> list[PlayerGameStats]:
        return self._select(
            "SELECT * FROM player_stats WHERE player_id = ? ORDER BY sim, season, day, game_id",
            (player_id,),
        )

    def get_by_player_season(self, player_id: str, season: Season) -> list[PlayerGameStats]:
        return self._select(
            "SELECT * FROM player_stats WHERE player_id = ? AND sim = ? AND season = ? ORDER BY day, game_id",
            (player_id, season.sim, season.season),
        )

    def get_by_season(self, season: Season) -> list[PlayerGameStats]:
        return self._select(
            "SELECT * FROM player_stats WHERE sim = ? AND season = ? ORDER BY day, game_id",
            (season.sim, season.season),
        )

    def get_by_team_season(self, team_id: str, season: Season) -> list[PlayerGameStats]:
        return self._select(
            "SELECT * FROM player_stats WHERE team_id = ? AND sim = ? AND season = ? ORDER BY day, game_id",
            (team_id, season.sim, season.season),
        )

    def player_ids_by_season(self, season: Season) -> list[str]:
        with self._pool.connection() as conn:
            rows = conn.execute(
                "SELECT DISTINCT player_id FROM player_stats WHERE sim = ? AND season = ? ORDER BY player_id",
                (season.sim, season.season),
            ).fetchall()
        return [row["player_id"] for row in rows]

    def all_player_ids(self) -> list[str]:
        with self._pool.connection() as conn:
            rows = conn.execute("SELECT DISTINCT player_id FROM player_stats ORDER BY player_id").fetchall()
        return [row["player_id"] for row in rows]

    def count_by_game(self, game_id: str) -> int:
        with self._pool.connection() as conn:
            row = conn.execute("SELECT COUNT(*) FROM player_stats WHERE game_id = ?", (game_id,)).fetchone()
        return row[0]

    @staticmethod
    def _row_to_stats(row: sqlite3.Row) -> PlayerGameStats:
        return PlayerGameStats(
            game_id=row["game_id"],
            team_id=row["team_id"],
            player_id=row["player_id"],
            sim=row["sim"],
            season=row["season"],
            day=row["day"],
            stats=stats_from_dict(json.loads(row["stats_json"])),
        )
