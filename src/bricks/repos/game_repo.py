import sqlite3

from bricks.db.pool import ConnectionPool
from bricks.domain.game import GameRecord
from bricks.domain.season import Season


class SqliteGameRepo:
    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def upsert(self, game: GameRecord) -> None:
        with self._pool.transaction() as conn:
            conn.execute(
                """INSERT INTO game_stats (game_id, sim, season, day, away, home, stats_json_z)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(game_id) DO UPDATE SET
                       sim=excluded.sim, season=excluded.season, day=excluded.day,
                       away=excluded.away, home=excluded.home,
                       stats_json_z=excluded.stats_json_z""",
                (
                    game.game_id,
                    game.sim,
                    game.season,
                    game.day,
                    game.away_team_id,
                    game.home_team_id,
                    game.stats_payload,
                ),
            )

    def get(self, game_id: str) -> GameRecord | None:
        with self._pool.connection() as conn:
            row = conn.execute("SELECT * FROM game_stats WHERE game_id = ?", (game_id,)).fetchone()
        return self._row_to_game(row) if row is not None else None

    def get_by_season(self, season: Season) -> list[GameRecord]:
        with self._pool.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM game_stats WHERE sim = ? AND season = ? ORDER BY day, game_id",
                (season.sim, season.season),
            ).fetchall()
        return [self._row_to_game(row) for row in rows]

    def seasons(self) -> list[Season]:
        with self._pool.connection() as conn:
            rows = conn.execute("SELECT DISTINCT sim, season FROM game_stats ORDER BY sim, season").fetchall()
        return [Season(row["sim"], row["season"]) for row in rows]

    def team_game_counts(self, season: Season, *, postseason_first_day: int) -> dict[str, int]:
        """Regular-season games played per team."""
        with self._pool.connection() as conn:
            rows = conn.execute(
                """SELECT team_id, COUNT(*) AS games FROM (
                       SELECT away AS team_id FROM game_stats
                        WHERE sim = ? AND season = ? AND day < ? AND away IS NOT NULL
                       UNION ALL
                       SELECT home AS team_id FROM game_stats
                        WHERE sim = ? AND season = ? AND day < ? AND home IS NOT NULL
                   ) GROUP BY team_id""",
                (season.sim, season.season, postseason_first_day, season.sim, season.season, postseason_first_day),
            ).fetchall()
        return {row["team_id"]: row["games"] for row in rows}

    @staticmethod
    def _row_to_game(row: sqlite3.Row) -> GameRecord:
        return GameRecord(
            game_id=row["game_id"],
            sim=row["sim"],
            season=row["season"],
            day=row["day"],
            away_team_id=row["away"],
            home_team_id=row["home"],
            stats_payload=row["stats_json_z"],
        )
