from read_models.model.base import Model
from read_models.model.builder import ModelBuilder
from read_models.model.eager import EagerLoadPlan
from read_models.model.hydration import Hydrator
from read_models.model.metadata import ModelMetadata, metadata_for
from read_models.model.resolver import RelationshipResolver

__all__ = [
    "Model",
    "ModelBuilder",
    "EagerLoadPlan",
    "Hydrator",
    "ModelMetadata",
    "metadata_for",
    "RelationshipResolver",
]
