"""ReadModels - read-only entities with identity mapping and batched relationship loading."""

from __future__ import annotations

from read_models.casting import AttributeCaster, Embed
from read_models.collection import Collection
from read_models.core.connection import ConnectionConfig, ConnectionManager
from read_models.core.engine import Engine
from read_models.core.enums import DatabaseBackend
from read_models.core.exceptions import (
    AdapterError,
    AttributeCastError,
    ConnectionError,  # noqa: A004
    ConnectionNotConfiguredError,
    EntityNotFoundError,
    ExecutionError,
    ImmutableEntityError,
    InvalidConstraintError,
    MappingError,
    NoResultsError,
    PoolError,
    QueryExecutionError,
    ReadModelsError,
    RelationshipDefinitionError,
    UnknownRelationshipError,
    UnknownScopeError,
)
from read_models.identity_map import IdentityMap
from read_models.manager import ConnectionRegistry, Manager
from read_models.model import EagerLoadPlan, Model, ModelBuilder
from read_models.relationships import (
    AbstractRelationship,
    BelongsTo,
    BelongsToMany,
    HasOne,
    HasOneToMany,
)

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    "ConnectionRegistry",
    # Engine
    "Engine",
    # Unit of work
    "Manager",
    "IdentityMap",
    # Models
    "Model",
    "ModelBuilder",
    "EagerLoadPlan",
    "Collection",
    # Relationships
    "AbstractRelationship",
    "BelongsTo",
    "BelongsToMany",
    "HasOne",
    "HasOneToMany",
    # Casting
    "AttributeCaster",
    "Embed",
    # Enums
    "DatabaseBackend",
    # Exceptions
    "ReadModelsError",
    "ExecutionError",
    "QueryExecutionError",
    "InvalidConstraintError",
    "UnknownScopeError",
    "MappingError",
    "EntityNotFoundError",
    "NoResultsError",
    "ImmutableEntityError",
    "RelationshipDefinitionError",
    "UnknownRelationshipError",
    "AttributeCastError",
    "AdapterError",
    "ConnectionError",
    "ConnectionNotConfiguredError",
    "PoolError",
]
