from read_models.relationships.base import AbstractRelationship
from read_models.relationships.belongs_to import BelongsTo
from read_models.relationships.belongs_to_many import BelongsToMany
from read_models.relationships.has_one import HasOne
from read_models.relationships.has_one_or_many import HasOneOrMany
from read_models.relationships.has_one_to_many import HasOneToMany

__all__ = [
    "AbstractRelationship",
    "BelongsTo",
    "BelongsToMany",
    "HasOne",
    "HasOneOrMany",
    "HasOneToMany",
]
