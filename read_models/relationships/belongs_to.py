from __future__ import annotations

from typing import TYPE_CHECKING

from read_models.relationships.base import AbstractRelationship

if TYPE_CHECKING:
    from read_models.collection import Collection
    from read_models.model.base import Model
    from read_models.model.builder import ModelBuilder


class BelongsTo(AbstractRelationship):
    """The inverse of a has-one / has-many: the parent holds the foreign key.

    Args:
        query: Builder for the owning type.
        parent: Entity holding *foreign_key*.
        foreign_key: Column on the parent, e.g. ``country_id``.
        owner_key: Column on the owner matched by the foreign key, usually its primary key.
        null_on_not_found: Attach None when no owner exists; otherwise an empty instance.
    """

    def __init__(
        self,
        query: ModelBuilder,
        parent: Model,
        foreign_key: str,
        owner_key: str,
        null_on_not_found: bool = True,
    ) -> None:
        super().__init__(query, parent)
        self._foreign_key = foreign_key
        self._owner_key = owner_key
        self._null_on_not_found = null_on_not_found

    def add_eager_loading_constraints(self, models: Collection[Model]) -> BelongsTo:
        self._has_constraints = True
        self._query.where_in(self._owner_key, self._keys(models, self._foreign_key))
        return self

    def add_relationship_results_to_models(
        self, models: Collection[Model], relationship: str
    ) -> BelongsTo:
        meta = self._related.meta
        keys = (meta.prefix_alias(self._owner_key), meta.prefix_alias("*"))
        if self._query.query.get_query_part("select") and not any(
            self.has_select_expression(key) for key in keys
        ):
            self._query.select(self._owner_key)

        owners = {str(owner.get_attribute(self._owner_key)): owner for owner in self.fetch()}

        for parent in models:
            value = parent.get_attribute(self._foreign_key)
            owner = owners.get(str(value)) if value is not None else None
            if owner is None and not self._null_on_not_found:
                owner = self._related.new()
            parent.set_relationship_value(relationship, owner)

        return self
