"""PostgreSQL adapter using psycopg (v3+)."""

from __future__ import annotations

from typing import Any

from read_models.core.connection import ConnectionConfig
from read_models.core.exceptions import ConnectionError, PoolError  # noqa: A004


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    parts.append(f"connect_timeout={config.pool_timeout}")
    return " ".join(parts)


class PostgresqlAdapter:
    """PostgreSQL adapter returning dict rows.

    Connections run in autocommit mode: every statement issued by the
    library is a plain SELECT, so no transaction is left open between calls.
    """

    @property
    def paramstyle(self) -> str:
        return "pyformat"

    def create_pool(self, config: ConnectionConfig) -> list[Any]:
        import psycopg
        import psycopg.rows

        conninfo = _build_conninfo(config)
        pool: list[Any] = []
        for _ in range(config.pool_size):
            try:
                conn = psycopg.connect(
                    conninfo, autocommit=True, row_factory=psycopg.rows.dict_row
                )
            except psycopg.Error as e:
                raise ConnectionError(f"Cannot connect to PostgreSQL: {e}") from e
            pool.append(conn)
        return pool

    def acquire_connection(self, pool: list[Any]) -> Any:
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(self, connection: Any, pool: list[Any]) -> None:
        pool.append(connection)

    def close_pool(self, pool: list[Any]) -> None:
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return connection.execute(sql, params or None)
