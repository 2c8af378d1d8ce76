"""Per-type table metadata."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """``UserAddress`` -> ``user_address``; ``HTTPLog`` -> ``http_log``."""
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").lower()


@dataclass(frozen=True)
class ModelMetadata:
    """Resolved table naming for a model type.

    Attributes:
        table: Table name.
        table_alias: Alias every column of this type is qualified with.
        primary_key: Internal (database) key name.
        external_primary_key: Optional globally unique key, e.g. a UUID column.
        foreign_key: How the primary key appears in other tables, e.g. ``user_id``.
    """

    model_class: type
    table: str
    table_alias: str
    primary_key: str
    external_primary_key: str | None
    foreign_key: str

    @property
    def primary_key_name_with_alias(self) -> str:
        return self.prefix_alias(self.primary_key)

    def prefix_alias(self, column: str) -> str:
        """Qualify a bare column with the table alias.

        Expressions, already-qualified columns and aliased selects are
        returned unchanged.
        """
        column = column.strip()
        if column == "*":
            return f"{self.table_alias}.*"
        if any(c in column for c in ".( "):
            return column
        return f"{self.table_alias}.{column}"


@lru_cache(maxsize=None)
def metadata_for(model_class: type) -> ModelMetadata:
    name = snake_case(model_class.__name__)
    table = getattr(model_class, "table", None) or f"{name}s"
    primary_key = getattr(model_class, "primary_key", None) or "id"

    return ModelMetadata(
        model_class=model_class,
        table=table,
        table_alias=getattr(model_class, "table_alias", None) or table,
        primary_key=primary_key,
        external_primary_key=getattr(model_class, "external_primary_key", None),
        foreign_key=getattr(model_class, "foreign_key", None) or f"{name}_{primary_key}",
    )
