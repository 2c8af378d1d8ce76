"""Relationship descriptor base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, ClassVar

from read_models.collection import Collection

if TYPE_CHECKING:
    from read_models.model.base import Model
    from read_models.model.builder import ModelBuilder


class AbstractRelationship(ABC):
    """A declared relationship between a parent entity and a related type.

    The descriptor owns a :class:`ModelBuilder` for the related type. Query
    methods called on the descriptor are applied to that builder, so a
    declaration can add ordering or filters::

        "addresses": lambda user: user.has_many(UserAddress).order_by("street")

    Args:
        query: Builder for the related type.
        parent: Entity (or type template) that declares the relationship.
    """

    has_many: ClassVar[bool] = False

    def __init__(self, query: ModelBuilder, parent: Model) -> None:
        self._query = query
        self._parent = parent
        self._related = query.model
        self._has_constraints = False
        self._no_keys = False

    @property
    def query(self) -> ModelBuilder:
        return self._query

    @property
    def parent(self) -> Model:
        return self._parent

    @property
    def related(self) -> Model:
        return self._related

    # --- loading protocol ---

    def add_constraints(self) -> AbstractRelationship:
        """Constrain the query to the single parent this descriptor was built for."""
        return self.add_eager_loading_constraints(Collection([self._parent]))

    @abstractmethod
    def add_eager_loading_constraints(self, models: Collection[Model]) -> AbstractRelationship:
        """Constrain the query to every parent in *models* with one batched condition."""

    @abstractmethod
    def add_relationship_results_to_models(
        self, models: Collection[Model], relationship: str
    ) -> AbstractRelationship:
        """Fetch the related entities and attach them to each of *models* as *relationship*."""

    def with_(self, *relations: Any) -> AbstractRelationship:
        """Eager load nested relationships of the related type."""
        self._query.with_(*relations)
        return self

    def add_constraint_callback_to_query(
        self, constraint: Callable[[ModelBuilder], Any] | None
    ) -> AbstractRelationship:
        if constraint is not None:
            constraint(self._query)
        return self

    def fetch(self) -> Collection[Model]:
        """Run the relationship query; constrains to the parent if nothing else has."""
        if not self._has_constraints:
            self.add_constraints()
        if self._no_keys:
            return Collection()
        return self._query.fetch()

    def _keys(self, models: Collection[Model], key: str) -> list[Any]:
        """Distinct non-null values of *key* across *models*."""
        values = [v for v in models.extract(key).unique() if v is not None]
        self._no_keys = not values
        return values

    def _related_identities(self, parent: Model, key: str) -> list[str]:
        """Identities of related entities recorded against *parent*'s *key* value."""
        identity_map = parent.manager.map
        meta = parent.meta
        if key in (meta.primary_key, meta.external_primary_key):
            return identity_map.get_related_identities_for(parent, type(self._related))
        return identity_map.related_identities(
            type(parent), parent.get_attribute(key), type(self._related)
        )

    def _related_entities(self, parent: Model, key: str, fetched: Iterable[Model]) -> list[Model]:
        """Entities from *fetched* related to *parent*, in query order.

        Edges recorded by other relationships to the same type are ignored.
        """
        identities = set(self._related_identities(parent, key))
        found: list[Model] = []
        seen: set[int] = set()
        for entity in fetched:
            if id(entity) in seen or str(entity.primary_key_value) not in identities:
                continue
            seen.add(id(entity))
            found.append(entity)
        return found

    # --- query pass-through ---

    def select(self, *columns: Any) -> AbstractRelationship:
        self._query.select(*columns)
        return self

    def where(self, expression: Any, values: Any = None) -> AbstractRelationship:
        self._query.where(expression, values)
        return self

    def or_where(self, expression: str, values: Any = None) -> AbstractRelationship:
        self._query.or_where(expression, values)
        return self

    def where_column(self, column: str, operator: str, value: Any) -> AbstractRelationship:
        self._query.where_column(column, operator, value)
        return self

    def where_in(self, column: str, values: Iterable[Any]) -> AbstractRelationship:
        self._query.where_in(column, values)
        return self

    def where_not_in(self, column: str, values: Iterable[Any]) -> AbstractRelationship:
        self._query.where_not_in(column, values)
        return self

    def where_null(self, column: str) -> AbstractRelationship:
        self._query.where_null(column)
        return self

    def where_not_null(self, column: str) -> AbstractRelationship:
        self._query.where_not_null(column)
        return self

    def where_between(self, column: str, start: Any, end: Any) -> AbstractRelationship:
        self._query.where_between(column, start, end)
        return self

    def order_by(self, column: str, direction: str = "ASC") -> AbstractRelationship:
        self._query.order_by(column, direction)
        return self

    def group_by(self, column: str) -> AbstractRelationship:
        self._query.group_by(column)
        return self

    def limit(self, limit: int) -> AbstractRelationship:
        self._query.limit(limit)
        return self

    def has_select_expression(self, expression: str) -> bool:
        return self._query.has_select_expression(expression)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {type(self._parent).__name__} -> {type(self._related).__name__}>"
