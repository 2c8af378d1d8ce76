from __future__ import annotations

from typing import TYPE_CHECKING

from read_models.collection import Collection
from read_models.relationships.has_one_or_many import HasOneOrMany

if TYPE_CHECKING:
    from read_models.model.base import Model
    from read_models.model.builder import ModelBuilder


class HasOneToMany(HasOneOrMany):
    """A collection of related entities per parent.

    With *index_by* the collection is keyed by that related column. Entities
    sharing an index value overwrite each other: the last one wins.
    """

    has_many = True

    def __init__(
        self,
        query: ModelBuilder,
        parent: Model,
        foreign_key: str,
        local_key: str,
        index_by: str | None = None,
    ) -> None:
        super().__init__(query, parent, foreign_key, local_key)
        self._index_by = index_by

    def add_relationship_results_to_models(
        self, models: Collection[Model], relationship: str
    ) -> HasOneToMany:
        self._select_keys()
        results = self.fetch()

        for parent in models:
            related: Collection[Model] = Collection()
            for entity in self._related_entities(parent, self._local_key, results):
                if self._index_by:
                    related.set(entity.get_attribute(self._index_by), entity)
                else:
                    related.add(entity)
            parent.set_relationship_value(relationship, related)

        return self
