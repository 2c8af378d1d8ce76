"""Model query builder.

Wraps a :class:`~read_models.query.QueryBuilder` bound to the engine serving
the model type. Rows are routed through the manager's identity map and
declared relationships are eager loaded in batches.

Example::

    users = (
        User.query(manager)
        .where_column("is_active", "=", True)
        .where_in("country_id", [1, 2])
        .order_by("name")
        .with_("addresses")
        .fetch()
    )
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from read_models.collection import Collection
from read_models.core.exceptions import (
    EntityNotFoundError,
    InvalidConstraintError,
    NoResultsError,
    UnknownScopeError,
)
from read_models.core.markers import filter_generated_selects
from read_models.core.params import placeholder_key
from read_models.model.eager import EagerLoadPlan
from read_models.query import ExpressionBuilder, QueryBuilder

if TYPE_CHECKING:
    from read_models.manager import Manager
    from read_models.model.base import Model
    from read_models.model.metadata import ModelMetadata

logger = logging.getLogger(__name__)

_sub_select_index = itertools.count(1)


def _method_for(and_or: str) -> str:
    return "or_where" if and_or == "or" else "and_where"


class ModelBuilder:
    """Fluent query facade returning entities of one model type."""

    def __init__(self, model: Model) -> None:
        self._model = model
        self._meta = model.meta
        self._query = QueryBuilder(model.manager.connection(type(model))).from_(
            self._meta.table, self._meta.table_alias
        )
        self._eager_load = EagerLoadPlan()

    @property
    def model(self) -> Model:
        return self._model

    @property
    def meta(self) -> ModelMetadata:
        return self._meta

    @property
    def manager(self) -> Manager:
        return self._model.manager

    @property
    def query(self) -> QueryBuilder:
        """The underlying query builder; gives full access to every query part."""
        return self._query

    @property
    def eager_loads(self) -> EagerLoadPlan:
        return self._eager_load

    def new_query(self) -> ModelBuilder:
        return ModelBuilder(self._model)

    # --- finders ---

    def find(self, id: Any, *columns: str) -> Model | None:
        """Find by primary key, optionally selecting only *columns*."""
        return self.select(*columns).where_primary_key(id).limit(1).fetch().first()

    def find_or_fail(self, id: Any, *columns: str) -> Model:
        """Find by primary key.

        Raises:
            EntityNotFoundError: Naming the model type, its primary key and *id*.
        """
        model = self.find(id, *columns)
        if model is None:
            raise EntityNotFoundError(self._model, self._meta.primary_key, id)
        return model

    def find_by(
        self,
        criteria: Mapping[str, Any],
        order_by: Mapping[str, str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> Collection[Model]:
        """Find records matching every ``column -> value`` in *criteria*.

        A ``None`` value matches ``IS NULL``.
        """
        for column, value in criteria.items():
            if value is None:
                self.where_null(column)
            else:
                self.where_column(column, "=", value)
        for column, direction in (order_by or {}).items():
            self.order_by(column, direction)
        if limit:
            self.limit(limit)
        if offset:
            self.offset(offset)

        return self.fetch()

    def find_one_by(
        self, criteria: Mapping[str, Any], order_by: Mapping[str, str] | None = None
    ) -> Model | None:
        return self.find_by(criteria, order_by, 1).first()

    # --- execution ---

    def fetch(self) -> Collection[Model]:
        """Run the query and return the mapped entities.

        Each row is checked for relationship markers, then resolved through
        the identity map, so a row already materialised in this unit of work
        returns the existing instance.
        """
        models: Collection[Model] = Collection()

        if not filter_generated_selects(self._query.get_query_part("select")):
            self.select("*")

        identity_map = self.manager.map
        identity_map.register_alias(self._model)

        cls = type(self._model)
        primary_key = self._meta.primary_key

        for row in self._query.execute():
            identity_map.infer_relationship_from_attributes(self._model, row)

            identity = row.get(primary_key)
            model = identity_map.get(cls, identity) if identity is not None else None
            if model is None:
                model = self._model.new(row)
                if identity is not None:
                    identity_map.add(model)

            models.add(model)

        if models:
            self.eager_load_relationships(models)

        return models

    def fetch_first_or_fail(self) -> Model:
        """Return the first result.

        Raises:
            NoResultsError: If the query returns no rows.
        """
        model = self.fetch().first()
        if model is None:
            raise NoResultsError(self._model, self._query.get_sql())
        return model

    def fetch_first_or_none(self) -> Model | None:
        return self.fetch().first()

    def count(self) -> int:
        """Count distinct matching records; runs on a copy of the current query."""
        query = self._query.copy()
        selects = query.get_query_part("select")
        grouped = [s for column in query.get_query_part("groupBy") for s in selects if column in s]

        rows = (
            query.select(*grouped)
            .add_select(f"COUNT(DISTINCT {self._meta.primary_key_name_with_alias}) AS total_results")
            .set_max_results(1)
            .set_first_result(0)
            .reset_order_by()
            .execute()
        )

        if not rows:
            return 0
        return int(rows[0].get("total_results") or 0)

    def get_sql(self) -> str:
        return self._query.get_sql()

    # --- eager loading ---

    def with_(self, *relations: Any) -> ModelBuilder:
        """Eager load relationships: names, dot paths, or ``{path: callback}`` mappings.

        A callback receives the relationship's ModelBuilder and may add
        constraints or ordering.
        """
        self._eager_load.merge(*relations)
        return self

    def eager_load_relationships(self, models: Collection[Model]) -> None:
        """Load every top-level relationship for *models*, one query per relationship."""
        for name, constraint in self._eager_load.top_level():
            logger.debug(
                "Eager loading %s.%s for %d parents", type(self._model).__name__, name, len(models)
            )
            (
                self._model.new()
                .get_relationship(name)
                .with_(self._eager_load.nested_for(name))
                .add_eager_loading_constraints(models)
                .add_constraint_callback_to_query(constraint)
                .add_relationship_results_to_models(models, name)
            )

    # --- select ---

    def expr(self) -> ExpressionBuilder:
        return self._query.expr()

    def select(self, *columns: Any) -> ModelBuilder:
        """Add columns to the select, prefixed with the table alias.

        A callable receives this builder. A ModelBuilder is added as a
        sub-select named by the second argument (``sub_select_<n>`` if
        omitted) and its parameters are merged in.
        """
        if not columns:
            columns = ("*",)

        first = columns[0]
        if callable(first) and not isinstance(first, ModelBuilder):
            first(self)
            return self

        if isinstance(first, ModelBuilder):
            alias = columns[1] if len(columns) > 1 else f"sub_select_{next(_sub_select_index)}"
            self._query.add_select(f"({first.get_sql()}) AS {alias}")
            self._query.set_parameters(first.get_parameters())
            return self

        selects = self._query.get_query_part("select")
        for column in columns:
            prefixed = self._meta.prefix_alias(column)
            if prefixed not in selects:
                selects.append(prefixed)
        self._query.select(*selects)

        return self

    def has_select_expression(self, expression: str) -> bool:
        """True if any select contains *expression* (substring match)."""
        return any(expression in select for select in self._query.get_query_part("select"))

    # --- where ---

    def where_primary_key(self, id: Any) -> ModelBuilder:
        return self.where_column(self._meta.primary_key_name_with_alias, "=", id)

    def where(
        self,
        expression: str | Callable[[ModelBuilder], Any],
        values: Mapping[str, Any] | None = None,
    ) -> ModelBuilder:
        """Add a raw AND condition.

        Values are bound by named placeholder (``{":name": value}``);
        positional ``?`` placeholders are rejected. A callable receives this
        builder instead.

        Raises:
            InvalidConstraintError: If *values* is not a mapping of named placeholders.
        """
        if callable(expression):
            expression(self)
            return self

        self._query.and_where(expression)
        self._bind(values)
        return self

    def or_where(self, expression: str, values: Mapping[str, Any] | None = None) -> ModelBuilder:
        self._query.or_where(expression)
        self._bind(values)
        return self

    def _bind(self, values: Mapping[str, Any] | None) -> None:
        if values is None:
            return
        if not isinstance(values, Mapping):
            raise InvalidConstraintError("WHERE values must be a mapping of named placeholders")
        for key, value in values.items():
            self._query.set_parameter(key, value)

    def where_in(
        self, column: str, values: Iterable[Any], and_or: str = "and", not_: bool = False
    ) -> ModelBuilder:
        if isinstance(values, Collection):
            values = values.to_list()

        placeholders = []
        for value in values:
            key = placeholder_key(self._meta.prefix_alias(column))
            self._query.set_parameter(key, value)
            placeholders.append(key)

        expr = self.expr()
        column = self._meta.prefix_alias(column)
        condition = expr.not_in(column, placeholders) if not_ else expr.in_(column, placeholders)
        getattr(self._query, _method_for(and_or))(condition)
        return self

    def where_not_in(self, column: str, values: Iterable[Any]) -> ModelBuilder:
        return self.where_in(column, values, "and", True)

    def or_where_in(self, column: str, values: Iterable[Any]) -> ModelBuilder:
        return self.where_in(column, values, "or")

    def or_where_not_in(self, column: str, values: Iterable[Any]) -> ModelBuilder:
        return self.where_in(column, values, "or", True)

    def where_column(
        self, column: str, operator: str, value: Any, and_or: str = "and"
    ) -> ModelBuilder:
        """Compare *column* to a bound value with any SQL comparison operator (=, <>, LIKE...)."""
        column = self._meta.prefix_alias(column)
        key = placeholder_key(column)
        condition = self.expr().comparison(column, operator, key)
        getattr(self._query, _method_for(and_or))(condition)
        self._query.set_parameter(key, value)
        return self

    def or_where_column(self, column: str, operator: str, value: Any) -> ModelBuilder:
        return self.where_column(column, operator, value, "or")

    def where_null(self, column: str, and_or: str = "and", not_: bool = False) -> ModelBuilder:
        expr = self.expr()
        column = self._meta.prefix_alias(column)
        condition = expr.is_not_null(column) if not_ else expr.is_null(column)
        getattr(self._query, _method_for(and_or))(condition)
        return self

    def where_not_null(self, column: str) -> ModelBuilder:
        return self.where_null(column, "and", True)

    def or_where_null(self, column: str) -> ModelBuilder:
        return self.where_null(column, "or")

    def or_where_not_null(self, column: str) -> ModelBuilder:
        return self.where_null(column, "or", True)

    def where_between(
        self, column: str, start: Any, end: Any, and_or: str = "and", not_: bool = False
    ) -> ModelBuilder:
        """Add ``column BETWEEN start AND end``.

        Dates compared against datetime columns usually mean midnight, so the
        end day may need to be the next day to include it fully.
        """
        column = self._meta.prefix_alias(column)
        start_key = placeholder_key(column)
        end_key = placeholder_key(column)

        condition = self.expr().between(column, start_key, end_key, not_)
        getattr(self._query, _method_for(and_or))(condition)
        self._query.set_parameter(start_key, start)
        self._query.set_parameter(end_key, end)
        return self

    def where_not_between(self, column: str, start: Any, end: Any) -> ModelBuilder:
        return self.where_between(column, start, end, "and", True)

    def or_where_between(self, column: str, start: Any, end: Any) -> ModelBuilder:
        return self.where_between(column, start, end, "or")

    def or_where_not_between(self, column: str, start: Any, end: Any) -> ModelBuilder:
        return self.where_between(column, start, end, "or", True)

    # --- grouping / ordering / paging ---

    def group_by(self, column: str) -> ModelBuilder:
        """Any non-aggregate selected column must also be grouped."""
        self._query.add_group_by(self._meta.prefix_alias(column))
        return self

    def order_by(self, column: str, direction: str = "ASC") -> ModelBuilder:
        self._query.add_order_by(self._meta.prefix_alias(column), direction)
        return self

    def limit(self, limit: int) -> ModelBuilder:
        self._query.set_max_results(limit)
        return self

    def offset(self, offset: int) -> ModelBuilder:
        self._query.set_first_result(offset)
        return self

    # --- query builder pass-through ---

    def join(self, table: str, alias: str | None, condition: str, kind: str = "inner") -> ModelBuilder:
        self._query.join(table, alias, condition, kind)
        return self

    def inner_join(self, table: str, alias: str | None, condition: str) -> ModelBuilder:
        return self.join(table, alias, condition, "inner")

    def left_join(self, table: str, alias: str | None, condition: str) -> ModelBuilder:
        return self.join(table, alias, condition, "left")

    def right_join(self, table: str, alias: str | None, condition: str) -> ModelBuilder:
        return self.join(table, alias, condition, "right")

    def having(self, expression: str) -> ModelBuilder:
        self._query.having(expression)
        return self

    def and_having(self, expression: str) -> ModelBuilder:
        self._query.and_having(expression)
        return self

    def or_having(self, expression: str) -> ModelBuilder:
        self._query.or_having(expression)
        return self

    def set_parameter(self, key: str, value: Any) -> ModelBuilder:
        self._query.set_parameter(key, value)
        return self

    def set_parameters(self, parameters: dict[str, Any]) -> ModelBuilder:
        self._query.set_parameters(parameters)
        return self

    def get_parameter(self, key: str) -> Any:
        return self._query.get_parameter(key)

    def get_parameters(self) -> dict[str, Any]:
        return self._query.get_parameters()

    # --- scopes ---

    def scope(self, name: str, *args: Any, **kwargs: Any) -> ModelBuilder:
        """Apply the named scope declared in the model type's ``scopes`` table.

        Raises:
            UnknownScopeError: If the type declares no scope called *name*.
        """
        scopes = type(self._model).scopes
        if name not in scopes:
            raise UnknownScopeError(self._model, name)
        scopes[name](self, *args, **kwargs)
        return self

    def copy(self) -> ModelBuilder:
        """Return an independent builder with the same query and eager loads."""
        clone = ModelBuilder.__new__(ModelBuilder)
        clone._model = self._model
        clone._meta = self._meta
        clone._query = self._query.copy()
        clone._eager_load = EagerLoadPlan(self._eager_load)
        return clone

    def __str__(self) -> str:
        return self.get_sql()
