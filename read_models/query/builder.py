"""SQL SELECT query builder.

A small, stateful builder in the style of a DBAL query builder: query parts
are accumulated independently and compiled by ``get_sql()``. Parameters are
always named; they are stored without the leading colon.
"""

from __future__ import annotations

import copy
from typing import Any

from read_models.core.enums import DatabaseBackend
from read_models.core.exceptions import InvalidConstraintError
from read_models.core.params import parameter_name
from read_models.query.expression import CompositeExpression, Expression, ExpressionBuilder

_JOIN_TYPES = {"inner": "INNER JOIN", "left": "LEFT JOIN", "right": "RIGHT JOIN"}
_DIRECTIONS = frozenset({"ASC", "DESC"})


def _append(where: Expression | None, type_: str, parts: tuple[Expression, ...]) -> Expression:
    if isinstance(where, CompositeExpression) and where.type == type_:
        return where.with_(*parts)
    if where is not None:
        parts = (where, *parts)
    return CompositeExpression(type_, parts)


class QueryBuilder:
    """Builds and executes a single SELECT statement.

    Args:
        engine: Engine used by ``execute()``. May be None for builders that
            are only compiled (e.g. sub-selects).
    """

    def __init__(self, engine: Any | None = None) -> None:
        self._engine = engine
        self._select: list[str] = []
        self._from: tuple[str, str | None] | None = None
        self._joins: list[tuple[str, str, str | None, str]] = []
        self._where: Expression | None = None
        self._group_by: list[str] = []
        self._having: Expression | None = None
        self._order_by: list[str] = []
        self._max_results: int | None = None
        self._first_result: int = 0
        self._parameters: dict[str, Any] = {}
        self._expr = ExpressionBuilder()

    @property
    def engine(self) -> Any | None:
        return self._engine

    def expr(self) -> ExpressionBuilder:
        return self._expr

    # --- select / from / join ---

    def select(self, *columns: str) -> QueryBuilder:
        """Replace the select list."""
        self._select = list(columns)
        return self

    def add_select(self, *columns: str) -> QueryBuilder:
        self._select.extend(columns)
        return self

    def from_(self, table: str, alias: str | None = None) -> QueryBuilder:
        self._from = (table, alias)
        return self

    def join(self, table: str, alias: str | None, condition: str, kind: str = "inner") -> QueryBuilder:
        if kind not in _JOIN_TYPES:
            raise InvalidConstraintError(f"unsupported join type {kind!r}")
        self._joins.append((kind, table, alias or None, condition))
        return self

    def inner_join(self, table: str, alias: str | None, condition: str) -> QueryBuilder:
        return self.join(table, alias, condition, "inner")

    def left_join(self, table: str, alias: str | None, condition: str) -> QueryBuilder:
        return self.join(table, alias, condition, "left")

    def right_join(self, table: str, alias: str | None, condition: str) -> QueryBuilder:
        return self.join(table, alias, condition, "right")

    # --- where / having ---

    def where(self, *predicates: Expression) -> QueryBuilder:
        """Replace the WHERE clause."""
        self._where = CompositeExpression.and_(*predicates) if predicates else None
        return self

    def and_where(self, *predicates: Expression) -> QueryBuilder:
        self._where = _append(self._where, CompositeExpression.TYPE_AND, predicates)
        return self

    def or_where(self, *predicates: Expression) -> QueryBuilder:
        self._where = _append(self._where, CompositeExpression.TYPE_OR, predicates)
        return self

    def having(self, *predicates: Expression) -> QueryBuilder:
        self._having = CompositeExpression.and_(*predicates) if predicates else None
        return self

    def and_having(self, *predicates: Expression) -> QueryBuilder:
        self._having = _append(self._having, CompositeExpression.TYPE_AND, predicates)
        return self

    def or_having(self, *predicates: Expression) -> QueryBuilder:
        self._having = _append(self._having, CompositeExpression.TYPE_OR, predicates)
        return self

    # --- grouping / ordering / paging ---

    def group_by(self, *columns: str) -> QueryBuilder:
        self._group_by = list(columns)
        return self

    def add_group_by(self, *columns: str) -> QueryBuilder:
        self._group_by.extend(columns)
        return self

    def add_order_by(self, sort: str, order: str = "ASC") -> QueryBuilder:
        direction = order.strip().upper()
        if direction not in _DIRECTIONS:
            raise InvalidConstraintError(f"order direction must be ASC or DESC, got {order!r}")
        self._order_by.append(f"{sort} {direction}")
        return self

    def reset_order_by(self) -> QueryBuilder:
        self._order_by = []
        return self

    def set_max_results(self, limit: int | None) -> QueryBuilder:
        self._max_results = limit
        return self

    def set_first_result(self, offset: int) -> QueryBuilder:
        self._first_result = offset
        return self

    # --- parameters ---

    def set_parameter(self, key: Any, value: Any) -> QueryBuilder:
        self._parameters[parameter_name(key)] = value
        return self

    def set_parameters(self, parameters: dict[Any, Any]) -> QueryBuilder:
        if not isinstance(parameters, dict):
            raise InvalidConstraintError("parameters must be a mapping of named placeholders")
        for key, value in parameters.items():
            self.set_parameter(key, value)
        return self

    def get_parameter(self, key: str) -> Any:
        return self._parameters.get(parameter_name(key))

    def get_parameters(self) -> dict[str, Any]:
        return dict(self._parameters)

    # --- introspection ---

    def get_query_part(self, name: str) -> Any:
        """Return a copy of a query part: select, from, join, where, groupBy, having, orderBy."""
        parts: dict[str, Any] = {
            "select": list(self._select),
            "from": self._from,
            "join": list(self._joins),
            "where": self._where,
            "groupBy": list(self._group_by),
            "having": self._having,
            "orderBy": list(self._order_by),
        }
        return parts[name]

    @property
    def max_results(self) -> int | None:
        return self._max_results

    @property
    def first_result(self) -> int:
        return self._first_result

    # --- compilation / execution ---

    def get_sql(self) -> str:
        if self._from is None:
            raise InvalidConstraintError("no FROM table has been set")

        table, alias = self._from
        sql = [f"SELECT {', '.join(self._select) or '*'}"]
        sql.append(f"FROM {table} {alias}" if alias and alias != table else f"FROM {table}")

        for kind, join_table, join_alias, condition in self._joins:
            target = f"{join_table} {join_alias}" if join_alias else join_table
            sql.append(f"{_JOIN_TYPES[kind]} {target} ON {condition}")

        if self._where is not None and str(self._where):
            sql.append(f"WHERE {self._where}")
        if self._group_by:
            sql.append(f"GROUP BY {', '.join(self._group_by)}")
        if self._having is not None and str(self._having):
            sql.append(f"HAVING {self._having}")
        if self._order_by:
            sql.append(f"ORDER BY {', '.join(self._order_by)}")
        if self._max_results is not None:
            sql.append(f"LIMIT {int(self._max_results)}")
        if self._first_result:
            if self._max_results is None:
                # an OFFSET needs a preceding LIMIT on SQLite
                sql.append("LIMIT ALL" if self._is_postgresql() else "LIMIT -1")
            sql.append(f"OFFSET {int(self._first_result)}")

        return " ".join(sql)

    def _is_postgresql(self) -> bool:
        return getattr(self._engine, "backend", None) is DatabaseBackend.POSTGRESQL

    def execute(self) -> list[dict[str, Any]]:
        """Run the query through the engine and return rows as dicts."""
        if self._engine is None:
            raise InvalidConstraintError("query builder is not bound to an engine")
        return self._engine.fetch_all(self.get_sql(), self.get_parameters())

    def copy(self) -> QueryBuilder:
        """Return an independent copy sharing only the engine."""
        clone = copy.copy(self)
        clone._select = list(self._select)
        clone._joins = list(self._joins)
        clone._group_by = list(self._group_by)
        clone._order_by = list(self._order_by)
        clone._parameters = dict(self._parameters)
        return clone

    def __str__(self) -> str:
        return self.get_sql()
