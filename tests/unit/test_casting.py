"""Unit tests for AttributeCaster."""

from __future__ import annotations

import datetime
import decimal
import uuid
from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from read_models.casting import AttributeCaster, Embed
from read_models.core.exceptions import AttributeCastError


@dataclass(frozen=True)
class Money:
    amount: decimal.Decimal
    currency: str


class Coordinates(BaseModel):
    lat: float
    lng: float


@pytest.fixture
def caster() -> AttributeCaster:
    return AttributeCaster()


class TestNamedCasts:
    def test_scalars(self, caster: AttributeCaster) -> None:
        result = caster.cast(
            {"id": "42", "ratio": "0.5", "active": 1, "code": 7},
            {"id": "int", "ratio": "float", "active": "bool", "code": "string"},
        )
        assert result == {"id": 42, "ratio": 0.5, "active": True, "code": "7"}

    def test_temporal(self, caster: AttributeCaster) -> None:
        result = caster.cast(
            {"created_at": "2024-01-05 09:30:00", "born": "1990-06-01"},
            {"created_at": "datetime", "born": "date"},
        )
        assert result["created_at"] == datetime.datetime(2024, 1, 5, 9, 30)
        assert result["born"] == datetime.date(1990, 6, 1)

    def test_uuid_and_decimal(self, caster: AttributeCaster) -> None:
        value = "9f8c1a0e-6b1f-4c55-9d2e-0a1b2c3d4e01"
        result = caster.cast({"uuid": value, "price": "9.99"}, {"uuid": "uuid", "price": "decimal"})
        assert result["uuid"] == uuid.UUID(value)
        assert result["price"] == decimal.Decimal("9.99")

    def test_json(self, caster: AttributeCaster) -> None:
        result = caster.cast({"tags": '["a", "b"]'}, {"tags": "json"})
        assert result["tags"] == ["a", "b"]

    def test_none_is_not_cast(self, caster: AttributeCaster) -> None:
        assert caster.cast({"id": None}, {"id": "int"}) == {"id": None}

    def test_missing_attribute_is_skipped(self, caster: AttributeCaster) -> None:
        assert caster.cast({"name": "x"}, {"id": "int"}) == {"name": "x"}

    def test_input_is_not_mutated(self, caster: AttributeCaster) -> None:
        raw = {"id": "1"}
        caster.cast(raw, {"id": "int"})
        assert raw == {"id": "1"}


class TestCustomCasts:
    def test_type_spec(self, caster: AttributeCaster) -> None:
        assert caster.cast({"n": "3"}, {"n": int}) == {"n": 3}

    def test_callable_spec(self, caster: AttributeCaster) -> None:
        assert caster.cast({"name": "alice"}, {"name": str.title}) == {"name": "Alice"}

    def test_register(self, caster: AttributeCaster) -> None:
        caster.register("upper", str.upper)
        assert caster.has("upper")
        assert caster.cast({"code": "gb"}, {"code": "upper"}) == {"code": "GB"}

    def test_constructor_types(self) -> None:
        caster = AttributeCaster({"cents": lambda v: v / 100})
        assert caster.cast({"price": 250}, {"price": "cents"}) == {"price": 2.5}


class TestEmbed:
    def test_builds_dataclass_and_removes_columns(self, caster: AttributeCaster) -> None:
        casts = {"price": Embed(Money, {"amount": "price_amount", "currency": "price_currency"})}
        result = caster.cast({"id": 1, "price_amount": "5.00", "price_currency": "GBP"}, casts)

        assert result == {"id": 1, "price": Money("5.00", "GBP")}

    def test_builds_pydantic_model(self, caster: AttributeCaster) -> None:
        casts = {"location": Embed(Coordinates, {"lat": "lat", "lng": "lng"}, remove=False)}
        result = caster.cast({"lat": "51.5", "lng": "-0.12"}, casts)

        assert result["location"] == Coordinates(lat=51.5, lng=-0.12)
        assert result["lat"] == "51.5"

    def test_all_null_columns_give_none(self, caster: AttributeCaster) -> None:
        casts = {"price": Embed(Money, {"amount": "price_amount", "currency": "price_currency"})}
        result = caster.cast({"price_amount": None, "price_currency": None}, casts)
        assert result == {"price": None}


class TestErrors:
    def test_invalid_value(self, caster: AttributeCaster) -> None:
        with pytest.raises(AttributeCastError, match="'id'") as exc_info:
            caster.cast({"id": "abc"}, {"id": "int"})
        assert exc_info.value.__cause__ is not None

    def test_unknown_type_name(self, caster: AttributeCaster) -> None:
        with pytest.raises(AttributeCastError, match="unknown cast type 'money'"):
            caster.cast({"price": 1}, {"price": "money"})

    def test_converter_errors_are_wrapped(self, caster: AttributeCaster) -> None:
        with pytest.raises(AttributeCastError):
            caster.cast({"n": "x"}, {"n": lambda v: int(v)})
