from __future__ import annotations

from typing import TYPE_CHECKING

from read_models.collection import Collection
from read_models.core.markers import filter_generated_selects, source_ref_marker
from read_models.relationships.base import AbstractRelationship

if TYPE_CHECKING:
    from read_models.model.base import Model
    from read_models.model.builder import ModelBuilder


class BelongsToMany(AbstractRelationship):
    """Many-to-many through a joining table.

    The join table's source column is selected under a marker alias so each
    related row names the parent it was loaded for; the identity map turns
    that into an edge while the row is decoded.

    Args:
        query: Builder for the related type.
        parent: Source entity.
        table: Joining table, e.g. ``user_roles``.
        table_source_key: Join column holding the parent key, e.g. ``user_id``.
        table_target_key: Join column holding the related key, e.g. ``role_id``.
        source_key: Parent column referenced by *table_source_key*.
        target_key: Related column referenced by *table_target_key*.
    """

    has_many = True

    def __init__(
        self,
        query: ModelBuilder,
        parent: Model,
        table: str,
        table_source_key: str,
        table_target_key: str,
        source_key: str,
        target_key: str,
    ) -> None:
        super().__init__(query, parent)
        self._table = table
        self._table_source_key = table_source_key
        self._table_target_key = table_target_key
        self._source_key = source_key
        self._target_key = target_key

    @property
    def qualified_source_key(self) -> str:
        return f"{self._table}.{self._table_source_key}"

    @property
    def qualified_target_key(self) -> str:
        return f"{self._table}.{self._table_target_key}"

    @property
    def marker(self) -> str:
        return source_ref_marker(self._table, self._table_source_key)

    def add_eager_loading_constraints(self, models: Collection[Model]) -> BelongsToMany:
        self._has_constraints = True

        condition = self._query.expr().eq(
            self.qualified_target_key, self._related.meta.prefix_alias(self._target_key)
        )
        (
            self._query.inner_join(self._table, None, condition)
            .select(f"{self.qualified_source_key} AS {self.marker}")
            .where_in(self.qualified_source_key, self._keys(models, self._source_key))
        )
        return self

    def _select_keys(self) -> None:
        # Rows need the related primary key for their edges to be recorded
        selects = filter_generated_selects(self._query.query.get_query_part("select"))
        meta = self._related.meta
        if not selects or self.has_select_expression(meta.prefix_alias("*")):
            return
        if not self.has_select_expression(meta.primary_key_name_with_alias):
            self._query.select(meta.primary_key_name_with_alias)

    def add_relationship_results_to_models(
        self, models: Collection[Model], relationship: str
    ) -> BelongsToMany:
        self._select_keys()
        results = self.fetch()

        for parent in models:
            parent.set_relationship_value(
                relationship, Collection(self._related_entities(parent, self._source_key, results))
            )

        return self
