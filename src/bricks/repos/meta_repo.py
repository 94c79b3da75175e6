from bricks.db.pool import ConnectionPool


class SqliteMetaRepo:
    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def get(self, name: str) -> str | None:
        with self._pool.connection() as conn:
            row = conn.execute("SELECT value FROM meta WHERE name = ?", (name,)).fetchone()
        return row["value"] if row is not None else None

    def set(self, name: str, value: str) -> None:
        with self._pool.transaction() as conn:
            conn.execute(
                "INSERT INTO meta (name, value) VALUES (?, ?) ON CONFLICT(name) DO UPDATE SET value=excluded.value",
                (name, value),
            )

    def delete(self, name: str) -> None:
        with self._pool.transaction() as conn:
            conn.execute("DELETE FROM meta WHERE name = ?", (name,))
