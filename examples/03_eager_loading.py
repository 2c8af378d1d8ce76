"""
Example 03: Eager Loading

This example demonstrates loading relationships for a whole result set in one
query per relationship, including nested paths and constraint callbacks.
"""

from read_models import ConnectionConfig, Manager, Model
from unittest.mock import patch
import tempfile
import sqlite3
from pathlib import Path


class Permission(Model):
    table = "permissions"


class Role(Model):
    table = "roles"
    relationships = {
        "permissions": lambda role: role.belongs_to_many(Permission, "role_permissions"),
    }


class Address(Model):
    table = "addresses"


class User(Model):
    table = "users"
    relationships = {
        "addresses": lambda user: user.has_many(Address),
        "addresses_by_type": lambda user: user.has_many(Address, index_by="type"),
        "roles": lambda user: user.belongs_to_many(Role, "user_roles"),
    }


def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
        CREATE TABLE addresses (id INTEGER PRIMARY KEY, user_id INTEGER, type TEXT, city TEXT);
        CREATE TABLE roles (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
        CREATE TABLE user_roles (user_id INTEGER, role_id INTEGER);
        CREATE TABLE permissions (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
        CREATE TABLE role_permissions (role_id INTEGER, permission_id INTEGER);

        INSERT INTO users (name) VALUES ('Alice'), ('Bob'), ('Charlie');
        INSERT INTO addresses (user_id, type, city) VALUES
            (1, 'home', 'London'), (1, 'work', 'Leeds'), (2, 'home', 'Paris');
        INSERT INTO roles (name) VALUES ('admin'), ('editor');
        INSERT INTO user_roles (user_id, role_id) VALUES (1, 1), (1, 2), (2, 2);
        INSERT INTO permissions (name) VALUES ('users.read'), ('users.write'), ('posts.publish');
        INSERT INTO role_permissions (role_id, permission_id) VALUES (1, 1), (1, 2), (2, 3);
    """)
    conn.commit()
    conn.close()

    manager = Manager.from_config(ConnectionConfig(driver="sqlite", database=db_path))
    engine = manager.connections.default

    print("=== Eager Loading ===\n")

    with manager.unit_of_work(), patch.object(engine, "fetch_all", wraps=engine.fetch_all) as spy:
        users = User.with_(manager, "addresses", "roles.permissions").order_by("id").fetch()

        for user in users:
            cities = ", ".join(address.city for address in user.addresses) or "-"
            print(f"{user.name}: addresses [{cities}]")
            for role in user.roles:
                names = ", ".join(p.name for p in role.permissions)
                print(f"  role {role.name}: {names}")
        print(f"\nQueries issued: {spy.call_count}\n")

    with manager.unit_of_work():
        # A callback constrains the relationship query
        users = User.with_(
            manager, {"addresses": lambda query: query.where_column("type", "=", "work")}
        ).fetch()
        for user in users:
            print(f"{user.name} work addresses: {len(user.addresses)}")
        print()

        # index_by keys the collection by a related column
        alice = User.with_(manager, "addresses_by_type").where_primary_key(1).fetch_first_or_fail()
        print(f"Alice's addresses by type: {sorted(alice.addresses_by_type.keys())}")

    manager.connections.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
