"""Query execution engine.

The Engine binds parameters, executes compiled SQL through the adapter and
returns rows as plain dicts keyed by column name (or select alias).
"""

from __future__ import annotations

import logging
from typing import Any

from read_models.core.connection import ConnectionConfig, ConnectionManager
from read_models.core.enums import DatabaseBackend
from read_models.core.exceptions import QueryExecutionError
from read_models.core.params import normalize_params

logger = logging.getLogger(__name__)


def _rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor results to list of dicts.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    if cursor.description is None:
        return []
    columns = [desc[0] for desc in cursor.description]
    rows = cursor.fetchall()
    if not rows:
        return []

    # Check if rows are already dict-like (e.g., psycopg dict_row)
    first_row = rows[0]
    if isinstance(first_row, dict):
        return [dict(row) for row in rows]

    return [dict(zip(columns, row, strict=True)) for row in rows]


class Engine:
    """Synchronous query execution engine.

    Every call checks a connection out of the pool, runs a single statement to
    completion and returns the connection; there is no statement caching and
    no de-duplication of identical queries.
    """

    def __init__(self, connection_manager: ConnectionManager) -> None:
        self._connection_manager = connection_manager
        self._paramstyle = connection_manager.adapter.paramstyle

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> Engine:
        """Create an Engine from a ConnectionConfig.

        Args:
            config: ConnectionConfig instance

        Returns:
            Engine instance
        """
        return cls(ConnectionManager(config))

    @property
    def backend(self) -> DatabaseBackend:
        return self._connection_manager.backend

    @property
    def connection_manager(self) -> ConnectionManager:
        return self._connection_manager

    def _execute(self, conn: Any, sql: str, params: dict[str, Any] | None) -> Any:
        logger.debug("Executing SQL: %s params=%s", sql, sorted(params or {}))
        try:
            return self._connection_manager.adapter.execute(
                conn, normalize_params(sql, self._paramstyle), params
            )
        except Exception as e:
            raise QueryExecutionError(sql, str(e)) from e

    def fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Fetch all matching rows as dicts."""
        with self._connection_manager.get_connection() as conn:
            cursor = self._execute(conn, sql, params)
            return _rows_to_dicts(cursor)

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._connection_manager.close_pool()
