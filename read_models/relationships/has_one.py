from __future__ import annotations

from typing import TYPE_CHECKING

from read_models.relationships.has_one_or_many import HasOneOrMany

if TYPE_CHECKING:
    from read_models.collection import Collection
    from read_models.model.base import Model
    from read_models.model.builder import ModelBuilder


class HasOne(HasOneOrMany):
    """One related entity per parent; the first matching row is used."""

    def __init__(
        self,
        query: ModelBuilder,
        parent: Model,
        foreign_key: str,
        local_key: str,
        null_on_not_found: bool = True,
    ) -> None:
        super().__init__(query, parent, foreign_key, local_key)
        self._null_on_not_found = null_on_not_found

    def add_relationship_results_to_models(
        self, models: Collection[Model], relationship: str
    ) -> HasOne:
        self._select_keys()
        results = self.fetch()

        for parent in models:
            entities = self._related_entities(parent, self._local_key, results)
            if entities:
                related = entities[0]
            else:
                related = None if self._null_on_not_found else self._related.new()
            parent.set_relationship_value(relationship, related)

        return self
