"""SQLite adapter using the stdlib sqlite3 module."""

from __future__ import annotations

import sqlite3
from typing import Any

from read_models.core.connection import ConnectionConfig
from read_models.core.exceptions import ConnectionError, PoolError  # noqa: A004


class SqliteAdapter:
    """SQLite adapter.

    Each pooled connection is opened separately, so an in-memory database
    (``:memory:``) should be used with ``pool_size=1``.
    """

    @property
    def paramstyle(self) -> str:
        return "named"

    def create_pool(self, config: ConnectionConfig) -> list[sqlite3.Connection]:
        pool: list[sqlite3.Connection] = []
        for _ in range(config.pool_size):
            try:
                conn = sqlite3.connect(
                    config.database,
                    timeout=config.pool_timeout,
                    check_same_thread=config.extra.get("check_same_thread", True),
                )
            except sqlite3.Error as e:
                raise ConnectionError(f"Cannot open SQLite database '{config.database}': {e}") from e
            pool.append(conn)
        return pool

    def acquire_connection(self, pool: list[sqlite3.Connection]) -> sqlite3.Connection:
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(
        self, connection: sqlite3.Connection, pool: list[sqlite3.Connection]
    ) -> None:
        pool.append(connection)

    def close_pool(self, pool: list[sqlite3.Connection]) -> None:
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> sqlite3.Cursor:
        return connection.execute(sql, params or {})
