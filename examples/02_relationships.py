"""
Example 02: Relationships

This example demonstrates declaring has-many, has-one, belongs-to and
belongs-to-many relationships and loading them lazily on first access.
"""

from read_models import ConnectionConfig, Manager, Model
import tempfile
import sqlite3
from pathlib import Path


class Order(Model):
    table = "orders"
    casts = {"total": "decimal"}
    relationships = {
        "customer": lambda order: order.belongs_to(Customer),
    }


class Tag(Model):
    table = "tags"


class Profile(Model):
    table = "profiles"


class Customer(Model):
    table = "customers"
    relationships = {
        "orders": lambda customer: customer.has_many(Order).order_by("total", "DESC"),
        "profile": lambda customer: customer.has_one(Profile),
        "tags": lambda customer: customer.belongs_to_many(Tag, "customer_tags"),
    }


def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE customers (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
        CREATE TABLE orders (id INTEGER PRIMARY KEY, customer_id INTEGER, total TEXT);
        CREATE TABLE profiles (id INTEGER PRIMARY KEY, customer_id INTEGER, bio TEXT);
        CREATE TABLE tags (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
        CREATE TABLE customer_tags (customer_id INTEGER, tag_id INTEGER);

        INSERT INTO customers (name) VALUES ('Alice'), ('Bob');
        INSERT INTO orders (customer_id, total) VALUES (1, '99.50'), (1, '15.00'), (2, '42.00');
        INSERT INTO profiles (customer_id, bio) VALUES (1, 'Regular since 2019');
        INSERT INTO tags (name) VALUES ('vip'), ('newsletter');
        INSERT INTO customer_tags (customer_id, tag_id) VALUES (1, 1), (1, 2), (2, 2);
    """)
    conn.commit()
    conn.close()

    manager = Manager.from_config(ConnectionConfig(driver="sqlite", database=db_path))

    print("=== Relationships ===\n")

    with manager.unit_of_work():
        alice = Customer.find(manager, 1)

        # Each relationship is queried the first time it is read
        print(f"{alice.name}'s orders:")
        for order in alice.orders:
            print(f"  - Order #{order.id}: {order.total}")
        print(f"Profile: {alice.profile.bio}")
        print(f"Tags: {', '.join(tag.name for tag in alice.tags)}\n")

        # The inverse side resolves to the already mapped customer
        order = Order.find(manager, 3)
        print(f"Order #{order.id} belongs to {order.customer.name}")
        print(f"Bob has a profile: {Customer.find(manager, 2).profile is not None}\n")

    manager.connections.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
