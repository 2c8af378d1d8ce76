"""SQL condition expressions.

Expressions are plain strings; ``CompositeExpression`` joins them with AND/OR
and parenthesises each part when there is more than one.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Union

from read_models.core.exceptions import InvalidConstraintError

Expression = Union[str, "CompositeExpression"]

_COMPARISON_OPERATORS = frozenset(
    {"=", "<>", "!=", "<", "<=", ">", ">=", "LIKE", "NOT LIKE", "ILIKE", "NOT ILIKE"}
)


class CompositeExpression:
    """An immutable AND/OR group of expressions."""

    TYPE_AND = "AND"
    TYPE_OR = "OR"

    __slots__ = ("_type", "_parts")

    def __init__(self, type_: str, parts: Iterable[Expression]) -> None:
        self._type = type_
        self._parts = tuple(p for p in parts if p is not None and str(p) != "")

    @classmethod
    def and_(cls, *parts: Expression) -> CompositeExpression:
        return cls(cls.TYPE_AND, parts)

    @classmethod
    def or_(cls, *parts: Expression) -> CompositeExpression:
        return cls(cls.TYPE_OR, parts)

    @property
    def type(self) -> str:
        return self._type

    def with_(self, *parts: Expression) -> CompositeExpression:
        """Return a copy with *parts* appended."""
        return CompositeExpression(self._type, (*self._parts, *parts))

    def __len__(self) -> int:
        return len(self._parts)

    def __str__(self) -> str:
        if len(self._parts) == 1:
            return str(self._parts[0])
        return f" {self._type} ".join(f"({part})" for part in self._parts)

    def __repr__(self) -> str:
        return f"CompositeExpression({self._type!r}, {self._parts!r})"


class ExpressionBuilder:
    """Builds condition strings for WHERE / HAVING / JOIN clauses."""

    def and_(self, *parts: Expression) -> CompositeExpression:
        return CompositeExpression.and_(*parts)

    def or_(self, *parts: Expression) -> CompositeExpression:
        return CompositeExpression.or_(*parts)

    def comparison(self, x: str, operator: str, y: str) -> str:
        op = operator.strip().upper()
        if op not in _COMPARISON_OPERATORS:
            raise InvalidConstraintError(f"unsupported comparison operator {operator!r}")
        return f"{x} {op} {y}"

    def eq(self, x: str, y: str) -> str:
        return self.comparison(x, "=", y)

    def neq(self, x: str, y: str) -> str:
        return self.comparison(x, "<>", y)

    def lt(self, x: str, y: str) -> str:
        return self.comparison(x, "<", y)

    def lte(self, x: str, y: str) -> str:
        return self.comparison(x, "<=", y)

    def gt(self, x: str, y: str) -> str:
        return self.comparison(x, ">", y)

    def gte(self, x: str, y: str) -> str:
        return self.comparison(x, ">=", y)

    def is_null(self, x: str) -> str:
        return f"{x} IS NULL"

    def is_not_null(self, x: str) -> str:
        return f"{x} IS NOT NULL"

    def in_(self, x: str, values: Iterable[str]) -> str:
        values = list(values)
        if not values:
            return "1 = 0"
        return f"{x} IN ({', '.join(values)})"

    def not_in(self, x: str, values: Iterable[str]) -> str:
        values = list(values)
        if not values:
            return "1 = 1"
        return f"{x} NOT IN ({', '.join(values)})"

    def between(self, x: str, start: str, end: str, not_: bool = False) -> str:
        return f"{x} {'NOT BETWEEN' if not_ else 'BETWEEN'} {start} AND {end}"
