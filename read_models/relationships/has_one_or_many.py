from __future__ import annotations

from typing import TYPE_CHECKING

from read_models.relationships.base import AbstractRelationship

if TYPE_CHECKING:
    from read_models.collection import Collection
    from read_models.model.base import Model
    from read_models.model.builder import ModelBuilder


class HasOneOrMany(AbstractRelationship):
    """Shared constraints for relationships where the related rows hold the foreign key.

    Args:
        query: Builder for the related type.
        parent: Entity owning the related rows.
        foreign_key: Qualified foreign key on the related table, e.g. ``user_addresses.user_id``.
        local_key: Parent column the foreign key refers to.
    """

    def __init__(self, query: ModelBuilder, parent: Model, foreign_key: str, local_key: str) -> None:
        super().__init__(query, parent)
        self._foreign_key = foreign_key
        self._local_key = local_key

        parent.manager.map.register_alias(parent, foreign_key.rsplit(".", 1)[-1])

    @property
    def foreign_key(self) -> str:
        return self._foreign_key

    @property
    def local_key(self) -> str:
        return self._local_key

    def add_eager_loading_constraints(self, models: Collection[Model]) -> HasOneOrMany:
        self._has_constraints = True
        self._query.where_in(self._foreign_key, self._keys(models, self._local_key))
        return self

    def _select_keys(self) -> None:
        # Restricted selects must still carry the keys edges are inferred from
        meta = self._related.meta
        if not self._query.query.get_query_part("select") or self.has_select_expression(
            meta.prefix_alias("*")
        ):
            return
        for column in (self._foreign_key, meta.primary_key_name_with_alias):
            if not self.has_select_expression(column):
                self._query.select(column)
