"""Relationship resolution for entities.

Each model type declares ``relationships`` as a table of
``name -> factory(model) -> descriptor``. Resolving a name is a single lookup
in that table; a factory that does not return a descriptor is a programming
error and is reported immediately.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from read_models.collection import Collection
from read_models.core.exceptions import RelationshipDefinitionError, UnknownRelationshipError
from read_models.relationships.base import AbstractRelationship

if TYPE_CHECKING:
    from read_models.model.base import Model


class RelationshipResolver:
    """Builds descriptors from a type's relationship table and lazy-loads values."""

    def is_declared(self, model_class: type, name: str) -> bool:
        return name in getattr(model_class, "relationships", {})

    def get_relationship(self, model: Model, name: str) -> AbstractRelationship:
        factory = type(model).relationships.get(name)
        if factory is None:
            raise UnknownRelationshipError(model, name)

        relationship = factory(model)

        if not isinstance(relationship, AbstractRelationship):
            if relationship is None:
                raise RelationshipDefinitionError(
                    model,
                    name,
                    'must return a relationship instance, but None was returned. '
                    'Was the "return" keyword used?',
                )
            raise RelationshipDefinitionError(
                model,
                name,
                f"must return a relationship instance, got {type(relationship).__name__}",
            )

        return relationship

    def get_value(self, model: Model, name: str) -> Any:
        """Return the loaded relationship value, loading it for this one entity if needed."""
        if model.is_relationship_loaded(name):
            return model.get_loaded_relationship(name)

        relationship = self.get_relationship(model, name)
        relationship.add_constraints()
        relationship.add_relationship_results_to_models(Collection([model]), name)

        return model.get_loaded_relationship(name)
