"""Unit tests for IdentityMap."""

from __future__ import annotations

import logging

import pytest

from read_models import Manager, Model
from read_models.identity_map import IdentityMap


class Customer(Model):
    table = "customers"


class Order(Model):
    table = "orders"


class Invoice(Model):
    table = "invoices"
    external_primary_key = "uuid"


@pytest.fixture
def identity_map(offline_manager: Manager) -> IdentityMap:
    return offline_manager.map


class TestAliases:
    def test_register_default_foreign_key(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        identity_map.register_alias(Customer(offline_manager))
        assert identity_map.aliases == {"customer_id": Customer}

    def test_first_registrant_wins(
        self, offline_manager: Manager, identity_map: IdentityMap, caplog: pytest.LogCaptureFixture
    ) -> None:
        identity_map.register_alias(Customer(offline_manager), "owner_id")
        with caplog.at_level(logging.DEBUG, logger="read_models.identity_map"):
            identity_map.register_alias(Order(offline_manager), "owner_id")

        assert identity_map.aliases["owner_id"] is Customer
        assert "already owned by Customer" in caplog.text

    def test_register_is_idempotent(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        identity_map.register_alias(Customer(offline_manager))
        identity_map.register_alias(Customer(offline_manager))
        assert identity_map.has_alias("customer_id")
        assert len(identity_map.aliases) == 1


class TestInference:
    def test_join_table_marker_round_trip(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        identity_map.register_alias(Customer(offline_manager))
        row = {"id": 7, "total": 10, "__srm_src_ref__orders__customer_id": 42}

        identity_map.infer_relationship_from_attributes(Order(offline_manager), row)

        customer = Customer(offline_manager, {"id": 42})
        assert identity_map.get_related_identities_for(customer, Order) == ["7"]
        assert "__srm_src_ref__orders__customer_id" not in row

    def test_join_column_containing_separator(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        identity_map.register_alias(Customer(offline_manager), "legacy__customer_id")
        identity_map.register_alias(Invoice(offline_manager), "customer_id")
        row = {"id": 7, "__srm_src_ref__orders__legacy__customer_id": 42}

        identity_map.infer_relationship_from_attributes(Order(offline_manager), row)

        assert identity_map.related_identities(Customer, 42, Order) == ["7"]
        assert identity_map.related_identities(Invoice, 42, Order) == []

    def test_exact_marker_uses_owning_key(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        identity_map.register_alias(Customer(offline_manager))
        template = Order(offline_manager, owning_key="customer_id")
        row = {"id": 3, "__srm_src_ref": 5}

        identity_map.infer_relationship_from_attributes(template, row)

        assert identity_map.related_identities(Customer, 5, Order) == ["3"]
        assert row == {"id": 3}

    def test_owning_key_column(self, offline_manager: Manager, identity_map: IdentityMap) -> None:
        identity_map.register_alias(Customer(offline_manager))
        template = Order(offline_manager, owning_key="customer_id")

        for row in ({"id": 1, "customer_id": 9}, {"id": 2, "customer_id": 9}):
            identity_map.infer_relationship_from_attributes(template, row)

        assert identity_map.related_identities(Customer, "9", Order) == ["1", "2"]
        assert identity_map.relationships[Customer]["9"][Order] == {"1": None, "2": None}

    def test_unknown_alias_is_ignored(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        row = {"id": 1, "__srm_src_ref__orders__customer_id": 42}
        identity_map.infer_relationship_from_attributes(Order(offline_manager), row)

        assert identity_map.relationships == {}
        assert row == {"id": 1}

    def test_null_marker_value_is_ignored(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        identity_map.register_alias(Customer(offline_manager))
        identity_map.infer_relationship_from_attributes(
            Order(offline_manager, owning_key="customer_id"), {"id": 1, "customer_id": None}
        )
        assert identity_map.relationships == {}


class TestRelatedIdentities:
    def test_external_identity_preferred(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        identity_map.register_relationship(Invoice, "abc", Order, 1)
        identity_map.register_relationship(Invoice, 10, Order, 2)

        invoice = Invoice(offline_manager, {"id": 10, "uuid": "abc"})
        assert identity_map.get_related_identities_for(invoice, Order) == ["1"]

    def test_falls_back_to_primary_key(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        identity_map.register_relationship(Invoice, 10, Order, 2)

        invoice = Invoice(offline_manager, {"id": 10, "uuid": "abc"})
        assert identity_map.get_related_identities_for(invoice, Order) == ["2"]

    def test_full_mapping_without_type(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        identity_map.register_relationship(Customer, 1, Order, 5)
        identity_map.register_relationship(Customer, 1, Invoice, 6)

        customer = Customer(offline_manager, {"id": 1})
        assert identity_map.get_related_identities_for(customer) == {Order: ["5"], Invoice: ["6"]}

    def test_no_edges(self, offline_manager: Manager, identity_map: IdentityMap) -> None:
        customer = Customer(offline_manager, {"id": 1})
        assert identity_map.get_related_identities_for(customer, Order) == []
        assert identity_map.get_related_identities_for(customer) == {}

    def test_edges_are_sets(self, identity_map: IdentityMap) -> None:
        identity_map.register_relationship(Customer, 1, Order, 5)
        identity_map.register_relationship(Customer, "1", Order, "5")
        assert identity_map.related_identities(Customer, 1, Order) == ["5"]


class TestEntities:
    def test_first_write_wins(self, offline_manager: Manager, identity_map: IdentityMap) -> None:
        original = Customer(offline_manager, {"id": 1, "name": "first"})
        copy = Customer(offline_manager, {"id": 1, "name": "second"})

        identity_map.add(original)
        identity_map.add(copy)

        assert identity_map.get(Customer, 1) is original
        assert identity_map.count() == 1

    def test_identities_are_string_coerced(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        customer = Customer(offline_manager, {"id": 1})
        identity_map.add(customer)

        assert identity_map.has(Customer, "1")
        assert identity_map.get(Customer, "1") is customer

    def test_external_identity_is_indexed(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        invoice = Invoice(offline_manager, {"id": 10, "uuid": "abc"})
        identity_map.add(invoice)

        assert identity_map.get(Invoice, "abc") is invoice
        assert identity_map.count() == 1

    def test_all_keeps_requested_order(
        self, offline_manager: Manager, identity_map: IdentityMap
    ) -> None:
        first, second = Customer(offline_manager, {"id": 1}), Customer(offline_manager, {"id": 2})
        identity_map.add(first)
        identity_map.add(second)

        assert identity_map.all(Customer, ["2", 1, 3]) == [second, first]
        assert identity_map.all(Customer, []) == []
        assert identity_map.all(Order, ["1"]) == []

    def test_clear_is_idempotent(self, offline_manager: Manager, identity_map: IdentityMap) -> None:
        identity_map.register_alias(Customer(offline_manager))
        identity_map.register_relationship(Customer, 1, Order, 2)
        identity_map.add(Customer(offline_manager, {"id": 1}))

        identity_map.clear()
        identity_map.clear()

        assert identity_map.count() == 0
        assert identity_map.aliases == {}
        assert identity_map.relationships == {}
        assert len(identity_map) == 0
