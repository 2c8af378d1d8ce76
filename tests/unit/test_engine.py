"""Unit tests for Engine."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from read_models.core.connection import ConnectionConfig, ConnectionManager
from read_models.core.engine import Engine
from read_models.core.enums import DatabaseBackend
from read_models.core.exceptions import AdapterError, QueryExecutionError


@pytest.fixture
def small_engine() -> Iterator[Engine]:
    """Create an engine over a two-row SQLite in-memory DB."""
    config = ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)
    manager = ConnectionManager(config)
    eng = Engine(manager)

    # Create the users table using raw connection
    with manager.get_connection() as conn:
        conn.execute(
            "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, email TEXT)"
        )
        conn.execute("INSERT INTO users (name, email) VALUES ('Alice', 'alice@example.com')")
        conn.execute("INSERT INTO users (name, email) VALUES ('Bob', 'bob@example.com')")
        conn.commit()

    yield eng
    eng.close()


class TestEngine:
    def test_fetch_all_returns_list_of_dicts(self, small_engine: Engine) -> None:
        results = small_engine.fetch_all("SELECT id, name, email FROM users ORDER BY name")
        assert len(results) == 2
        assert all(isinstance(r, dict) for r in results)
        assert [r["name"] for r in results] == ["Alice", "Bob"]

    def test_fetch_all_uses_select_aliases(self, small_engine: Engine) -> None:
        results = small_engine.fetch_all("SELECT u.name AS user_name FROM users u WHERE u.id = 1")
        assert results == [{"user_name": "Alice"}]

    def test_fetch_all_empty(self, small_engine: Engine) -> None:
        assert small_engine.fetch_all("SELECT * FROM users WHERE id = :id", {"id": 99}) == []

    def test_parameter_binding_works(self, small_engine: Engine) -> None:
        rows = small_engine.fetch_all("SELECT name FROM users WHERE id = :user_id", {"user_id": 2})
        assert rows == [{"name": "Bob"}]

    def test_driver_errors_are_wrapped(self, small_engine: Engine) -> None:
        with pytest.raises(QueryExecutionError, match="no_such_table") as exc_info:
            small_engine.fetch_all("SELECT * FROM no_such_table")
        assert exc_info.value.sql == "SELECT * FROM no_such_table"
        assert exc_info.value.__cause__ is not None

    def test_backend(self, small_engine: Engine) -> None:
        assert small_engine.backend is DatabaseBackend.SQLITE

    def test_from_config(self, sqlite_config: ConnectionConfig) -> None:
        eng = Engine.from_config(sqlite_config)
        assert eng.fetch_all("SELECT 1 AS one") == [{"one": 1}]
        eng.close()


class TestConnectionConfig:
    def test_unknown_driver(self) -> None:
        config = ConnectionConfig(driver="db2", database="x")
        with pytest.raises(AdapterError, match="db2"):
            ConnectionManager(config)

    def test_backend_is_case_insensitive(self) -> None:
        config = ConnectionConfig(driver="PostgreSQL", database="x")
        assert config.backend is DatabaseBackend.POSTGRESQL
