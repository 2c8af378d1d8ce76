"""Marker columns injected into relationship queries.

A marker column carries the identity of the source side of a relationship
alongside the target's own columns. Marker names are kept short: some
databases cap identifier length at 63 characters.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

INTERNAL_KEY_PREFIX = "__srm"

# The identity of the source (left side) of a relationship
RELATIONSHIP_SOURCE_MODEL_REF = INTERNAL_KEY_PREFIX + "_src_ref"

# The identity of the target (right side) of a relationship
RELATIONSHIP_TARGET_MODEL_REF = INTERNAL_KEY_PREFIX + "_tar_ref"

MARKER_SEPARATOR = "__"


def source_ref_marker(join_table: str, join_column: str) -> str:
    """Build the marker alias for a join-table source column.

    The table part must not contain the separator; the column part may.
    """
    return MARKER_SEPARATOR.join(
        (RELATIONSHIP_SOURCE_MODEL_REF, join_table.replace(".", "_"), join_column)
    )


def source_ref_column(marker: str) -> str:
    """Return the join column named by a :func:`source_ref_marker` alias."""
    rest = marker[len(RELATIONSHIP_SOURCE_MODEL_REF) + len(MARKER_SEPARATOR) :]
    return rest.split(MARKER_SEPARATOR, 1)[-1]


def is_generated_key(key: Any, value: Any = None) -> bool:
    """True if *key* (or a string *value*) is a library-generated marker."""
    if isinstance(key, str) and INTERNAL_KEY_PREFIX in key:
        return True
    return isinstance(value, str) and (
        RELATIONSHIP_SOURCE_MODEL_REF in value or RELATIONSHIP_TARGET_MODEL_REF in value
    )


def filter_generated_keys(attributes: Mapping[str, Any]) -> dict[str, Any]:
    """Return *attributes* without any generated marker keys."""
    return {k: v for k, v in attributes.items() if not is_generated_key(k, v)}


def filter_generated_selects(selects: Iterable[str]) -> list[str]:
    """Return only the select expressions that were not generated internally."""
    return [s for s in selects if not is_generated_key(s, s)]
