import sqlite3

from bricks.db.pool import ConnectionPool
from bricks.domain.game import DebugLog


class SqliteDebugLogRepo:
    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def upsert(self, log: DebugLog) -> None:
        with self._pool.transaction() as conn:
            conn.execute(
                """INSERT INTO game_debug (game_id, error, log_json_z) VALUES (?, ?, ?)
                   ON CONFLICT(game_id) DO UPDATE SET error=excluded.error, log_json_z=excluded.log_json_z""",
                (log.game_id, log.error, log.log_payload),
            )

    def get(self, game_id: str) -> DebugLog | None:
        with self._pool.connection() as conn:
            row = conn.execute("SELECT * FROM game_debug WHERE game_id = ?", (game_id,)).fetchone()
        return self._row_to_log(row) if row is not None else None

    def get_failed(self) -> list[DebugLog]:
        with self._pool.connection() as conn:
            rows = conn.execute("SELECT * FROM game_debug WHERE error IS NOT NULL ORDER BY game_id").fetchall()
        return [self._row_to_log(row) for row in rows]

    @staticmethod
    def _row_to_log(row: sqlite3.Row) -> DebugLog:
        return DebugLog(game_id=row["game_id"], error=row["error"], log_payload=row["log_json_z"])
