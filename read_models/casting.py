"""Attribute casting.

Converts raw column values into typed attributes before an entity is built.
A model declares ``casts`` as ``attribute -> spec`` where spec is one of:

* a registered type name (``"int"``, ``"datetime"``, ``"uuid"``, ``"json"`` ...);
* a type, validated with a pydantic ``TypeAdapter`` (so ``"42"`` -> ``42``);
* a callable taking the raw value;
* an :class:`Embed`, building a value object from several columns.

``None`` values are never cast.
"""

from __future__ import annotations

import datetime
import decimal
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ConfigDict, Json, TypeAdapter, ValidationError

from read_models.core.exceptions import AttributeCastError


@dataclass(frozen=True)
class Embed:
    """Build a value object from several columns.

    Args:
        target_class: Class (dataclass, pydantic model or plain) to construct.
        field_map: constructor argument -> column name.
        remove: Drop the source columns from the attributes once embedded.
    """

    target_class: type
    field_map: Mapping[str, str]
    remove: bool = True

    def build(self, attributes: Mapping[str, Any]) -> Any:
        values = {arg: attributes.get(col) for arg, col in self.field_map.items()}
        # No value object when every source column is NULL
        if all(v is None for v in values.values()):
            return None
        if hasattr(self.target_class, "model_validate"):
            return self.target_class.model_validate(values)
        return self.target_class(**values)


_DEFAULT_TYPES: dict[str, Any] = {
    "int": int,
    "integer": int,
    "float": float,
    "str": str,
    "string": str,
    "bool": bool,
    "boolean": bool,
    "datetime": datetime.datetime,
    "date": datetime.date,
    "time": datetime.time,
    "decimal": decimal.Decimal,
    "uuid": uuid.UUID,
    "json": Json[Any],
}


class AttributeCaster:
    """Casts raw row values using a registry of named types."""

    def __init__(self, types: Mapping[str, Any] | None = None) -> None:
        self._types: dict[str, Any] = dict(_DEFAULT_TYPES)
        self._adapters: dict[Any, TypeAdapter[Any]] = {}
        if types:
            self._types.update(types)

    def register(self, name: str, type_: Any) -> AttributeCaster:
        """Register (or replace) a named cast type."""
        self._types[name] = type_
        return self

    def has(self, name: str) -> bool:
        return name in self._types

    def cast(self, attributes: Mapping[str, Any], casts: Mapping[str, Any]) -> dict[str, Any]:
        """Return a new attribute dict with every declared cast applied."""
        result = dict(attributes)

        for name, spec in casts.items():
            if isinstance(spec, Embed):
                value = spec.build(result)
                if spec.remove:
                    for column in spec.field_map.values():
                        result.pop(column, None)
                result[name] = value
                continue

            if name not in result or result[name] is None:
                continue
            result[name] = self._cast_value(name, result[name], spec)

        return result

    def _cast_value(self, name: str, value: Any, spec: Any) -> Any:
        if isinstance(spec, str):
            if spec not in self._types:
                raise AttributeCastError(name, f"unknown cast type '{spec}'")
            spec = self._types[spec]

        try:
            if _is_converter(spec):
                return spec(value)
            return self._adapter_for(spec).validate_python(value)
        except ValidationError as e:
            raise AttributeCastError(name, str(e)) from e
        except (TypeError, ValueError) as e:
            raise AttributeCastError(name, str(e)) from e

    def _adapter_for(self, spec: Any) -> TypeAdapter[Any]:
        try:
            adapter = self._adapters.get(spec)
        except TypeError:
            return TypeAdapter(spec)
        if adapter is None:
            # Numeric columns cast to str, e.g. integer ids read as strings
            config = ConfigDict(coerce_numbers_to_str=True) if spec is str else None
            adapter = self._adapters[spec] = TypeAdapter(spec, config=config)
        return adapter


def _is_converter(spec: Any) -> bool:
    """Plain callables convert values themselves; types and typing forms are validated."""
    return (
        callable(spec)
        and not isinstance(spec, type)
        and getattr(spec, "__origin__", None) is None
    )
