"""SQL parameter handling.

Builders always bind ``:name`` placeholders. They are converted to the
driver-specific format right before execution; string literals and
PostgreSQL ``::typecast`` syntax are left untouched.
"""

from __future__ import annotations

import itertools
import re
from functools import lru_cache
from typing import Any

from read_models.core.exceptions import InvalidConstraintError

# Matches :name but not ::typecast and not inside words
_PARAM_PATTERN = re.compile(r"(?<![:\w]):([a-zA-Z_]\w*)")

# Matches single-quoted string literals (with escaped quotes handled)
_STRING_LITERAL_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'")

_SLUG_PATTERN = re.compile(r"[^a-zA-Z0-9_]+")

# Shared across builders so merged sub-select parameters never collide
_placeholder_index = itertools.count(1)


def normalize_params(sql: str, paramstyle: str) -> str:
    """Convert :name parameters to the target param style.

    Args:
        sql: SQL string with :name parameters.
        paramstyle: Target style - 'named' (no conversion) or 'pyformat' (%(name)s).

    Returns:
        SQL with parameters converted to the target style.
    """
    if paramstyle == "named":
        return sql
    return _convert_to_pyformat(sql)


@lru_cache(maxsize=256)
def _convert_to_pyformat(sql: str) -> str:
    """Convert :name params to %(name)s, preserving string literals."""
    parts: list[str] = []
    last_end = 0

    for match in _STRING_LITERAL_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            parts.append(_PARAM_PATTERN.sub(r"%(\1)s", sql[last_end:start]))
        parts.append(match.group())
        last_end = end

    if last_end < len(sql):
        parts.append(_PARAM_PATTERN.sub(r"%(\1)s", sql[last_end:]))

    return "".join(parts)


def placeholder_key(column: str) -> str:
    """Return a unique ``:bind_<column>_<n>`` placeholder for *column*.

    Placeholder names may only contain ASCII letters, digits and underscores,
    so dots and hyphens in qualified column names are folded to underscores.
    """
    slug = _SLUG_PATTERN.sub("_", column).strip("_").lower() or "value"
    return f":bind_{slug}_{next(_placeholder_index)}"


def parameter_name(key: Any) -> str:
    """Return the bare parameter name for a bound key.

    Accepts ``":name"`` or ``"name"``. Positional keys (``?`` or integers)
    are rejected.

    Raises:
        InvalidConstraintError: If *key* is positional.
    """
    if not isinstance(key, str) or key.strip() in ("", "?"):
        raise InvalidConstraintError(
            f"conditions must use named placeholders, got {key!r}"
        )
    return key[1:] if key.startswith(":") else key
