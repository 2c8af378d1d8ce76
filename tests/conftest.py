"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from stubs import ALICE_UUID, BOB_UUID, CAROL_UUID

from read_models.core.connection import ConnectionConfig
from read_models.core.engine import Engine
from read_models.manager import ConnectionRegistry, Manager

SCHEMA = [
    "CREATE TABLE countries (id INTEGER PRIMARY KEY, name TEXT NOT NULL, code TEXT NOT NULL)",
    "CREATE TABLE users (id INTEGER PRIMARY KEY, uuid TEXT NOT NULL, name TEXT NOT NULL, "
    "email TEXT NOT NULL, is_active INTEGER NOT NULL, country_id INTEGER, created_at TEXT)",
    "CREATE TABLE user_addresses (id INTEGER PRIMARY KEY, user_id INTEGER, type TEXT, "
    "street TEXT, city TEXT)",
    "CREATE TABLE user_profiles (id INTEGER PRIMARY KEY, user_uuid TEXT NOT NULL, bio TEXT)",
    "CREATE TABLE roles (id INTEGER PRIMARY KEY, name TEXT NOT NULL)",
    "CREATE TABLE user_roles (user_id INTEGER NOT NULL, role_id INTEGER NOT NULL)",
    "CREATE TABLE permissions (id INTEGER PRIMARY KEY, name TEXT NOT NULL)",
    "CREATE TABLE role_permissions (role_id INTEGER NOT NULL, permission_id INTEGER NOT NULL)",
]

SEED = [
    "INSERT INTO countries (id, name, code) VALUES (1, 'United Kingdom', 'GB'), (2, 'France', 'FR')",
    "INSERT INTO users (id, uuid, name, email, is_active, country_id, created_at) VALUES "
    f"(1, '{ALICE_UUID}', 'Alice', 'alice@example.com', 1, 1, '2024-01-05 09:30:00'), "
    f"(2, '{BOB_UUID}', 'Bob', 'bob@example.com', 1, 2, '2024-02-10 14:00:00'), "
    f"(3, '{CAROL_UUID}', 'Carol', 'carol@example.com', 0, NULL, '2024-03-15 18:45:00')",
    "INSERT INTO user_addresses (id, user_id, type, street, city) VALUES "
    "(1, 1, 'home', '1 High Street', 'London'), "
    "(2, 1, 'work', '2 Market Square', 'Leeds'), "
    "(3, 2, 'home', '3 Rue de Rivoli', 'Paris'), "
    "(4, 2, 'home', '4 Quai Voltaire', 'Paris'), "
    "(5, NULL, 'home', '5 Nowhere Lane', 'Nowhere')",
    f"INSERT INTO user_profiles (id, user_uuid, bio) VALUES (1, '{ALICE_UUID}', 'Likes tea')",
    "INSERT INTO roles (id, name) VALUES (1, 'admin'), (2, 'editor'), (3, 'viewer')",
    "INSERT INTO user_roles (user_id, role_id) VALUES (1, 1), (1, 2), (2, 2)",
    "INSERT INTO permissions (id, name) VALUES (1, 'users.read'), (2, 'users.write'), "
    "(3, 'posts.publish')",
    "INSERT INTO role_permissions (role_id, permission_id) VALUES (1, 1), (1, 2), (2, 3)",
]


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config; one pooled connection keeps one database."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
def engine(sqlite_config: ConnectionConfig) -> Iterator[Engine]:
    """Engine over a seeded in-memory database."""
    eng = Engine.from_config(sqlite_config)

    with eng.connection_manager.get_connection() as conn:
        for statement in SCHEMA + SEED:
            conn.execute(statement)
        conn.commit()

    yield eng
    eng.close()


@pytest.fixture
def manager(engine: Engine) -> Iterator[Manager]:
    """A unit of work over the seeded database."""
    mgr = Manager(engine)
    with mgr.unit_of_work():
        yield mgr


@pytest.fixture
def offline_manager() -> Manager:
    """A manager with no engines, for tests that never reach the database."""
    return Manager(ConnectionRegistry())
