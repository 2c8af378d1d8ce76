"""Connection configuration and management.

ConnectionConfig is a Pydantic model for type-safe connection config.
ConnectionManager uses the adapter protocol for pool-based connection
lifecycle.
"""

from __future__ import annotations

import importlib
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel

from read_models.core.enums import DatabaseBackend
from read_models.core.exceptions import AdapterError


class ConnectionConfig(BaseModel):
    """Configuration for database connections."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    pool_size: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800
    extra: dict[str, Any] = {}

    @property
    def backend(self) -> DatabaseBackend:
        try:
            return DatabaseBackend(self.driver.lower())
        except ValueError:
            raise AdapterError(f"Unsupported database driver: {self.driver}") from None


# Adapter module mapping: backend -> (module_path, class_name)
_ADAPTER_MAP: dict[DatabaseBackend, tuple[str, str]] = {
    DatabaseBackend.SQLITE: ("read_models.adapters.sqlite", "SqliteAdapter"),
    DatabaseBackend.POSTGRESQL: ("read_models.adapters.postgresql", "PostgresqlAdapter"),
}


def _load_adapter(config: ConnectionConfig) -> Any:
    """Load an adapter for the configured driver."""
    module_path, cls_name = _ADAPTER_MAP[config.backend]

    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter for '{config.driver}': {e}") from e


class ConnectionManager:
    """Synchronous connection manager using the SyncAdapter protocol."""

    def __init__(self, config: ConnectionConfig, adapter: Any | None = None) -> None:
        self.config = config
        self._adapter = adapter if adapter is not None else _load_adapter(config)
        self._pool: Any = None

    @property
    def adapter(self) -> Any:
        return self._adapter

    @property
    def backend(self) -> DatabaseBackend:
        return self.config.backend

    def initialize_pool(self) -> Any:
        """Initialize the connection pool."""
        if self._pool is None:
            self._pool = self._adapter.create_pool(self.config)
        return self._pool

    @contextmanager
    def get_connection(self):  # type: ignore[no-untyped-def]
        """Get a connection from the pool as a context manager."""
        if self._pool is None:
            self.initialize_pool()
        connection = self._adapter.acquire_connection(self._pool)
        try:
            yield connection
        finally:
            self._adapter.release_connection(connection, self._pool)

    def close_pool(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            self._adapter.close_pool(self._pool)
            self._pool = None
