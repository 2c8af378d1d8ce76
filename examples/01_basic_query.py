"""
Example 01: Basic Queries

This example demonstrates declaring a read-only model and querying it through
a Manager: finders, fluent conditions, scopes and counting.
"""

from read_models import ConnectionConfig, EntityNotFoundError, Manager, Model
import tempfile
import sqlite3
from pathlib import Path


class User(Model):
    table = "users"
    casts = {"active": "bool", "created_at": "datetime"}
    scopes = {
        "active": lambda query: query.where_column("active", "=", True),
    }


def main():
    # Create a temporary database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            active INTEGER DEFAULT 1,
            created_at TEXT
        )
    """)
    conn.execute("INSERT INTO users (name, email, created_at) VALUES ('Alice', 'alice@example.com', '2024-01-05 09:30:00')")
    conn.execute("INSERT INTO users (name, email, created_at) VALUES ('Bob', 'bob@example.com', '2024-02-10 14:00:00')")
    conn.execute("INSERT INTO users (name, email, active) VALUES ('Charlie', 'charlie@example.com', 0)")
    conn.commit()
    conn.close()

    manager = Manager.from_config(ConnectionConfig(driver="sqlite", database=db_path))

    print("=== Basic Queries ===\n")

    with manager.unit_of_work():
        # find: a single entity by primary key
        user = User.find(manager, 1)
        print(f"find result: {user!r}")
        print(f"Name: {user.name}, created: {user.created_at:%Y-%m-%d}\n")

        # The identity map hands back the same instance for the same row
        print(f"Same instance on second lookup: {User.find(manager, 1) is user}\n")

        # Fluent conditions
        users = User.query(manager).where_column("name", "LIKE", "%o%").order_by("name").fetch()
        print(f"Names containing 'o' ({len(users)} rows):")
        for user in users:
            print(f"  - {user.name} ({user.email})")
        print()

        # Scopes and counting
        print(f"Active users: {User.query(manager).scope('active').count()}")
        print(f"All users: {User.query(manager).count()}\n")

        try:
            User.find_or_fail(manager, 42)
        except EntityNotFoundError as e:
            print(f"find_or_fail: {e}\n")

    # Clean up
    manager.connections.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
