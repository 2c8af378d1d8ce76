"""ReadModels exception hierarchy.

All exceptions are ReadModels-specific. Raw driver and validation errors are
wrapped and chained, never exposed directly to callers.
"""

from __future__ import annotations

from typing import Any


def _name_of(model: Any) -> str:
    if isinstance(model, type):
        return model.__name__
    if isinstance(model, str):
        return model
    return type(model).__name__


class ReadModelsError(Exception):
    """Base exception for all ReadModels errors."""


# --- Execution ---


class ExecutionError(ReadModelsError):
    """Base for query building and execution errors."""


class QueryExecutionError(ExecutionError):
    """Raised when the underlying driver fails to execute a statement."""

    def __init__(self, sql: str, detail: str) -> None:
        self.sql = sql
        self.detail = detail
        super().__init__(f"Query failed: {detail} [SQL: {sql}]")


class InvalidConstraintError(ExecutionError):
    """Raised when a positional placeholder is bound where a named one is required."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid constraint: {detail}")


class UnknownScopeError(ExecutionError):
    """Raised when a query scope is not registered on the model type."""

    def __init__(self, model: Any, scope: str) -> None:
        self.model = _name_of(model)
        self.scope = scope
        super().__init__(f"Scope '{scope}' is not registered on {self.model}")


# --- Mapping ---


class MappingError(ReadModelsError):
    """Base for entity mapping errors."""


class EntityNotFoundError(MappingError):
    """Raised when a required single-entity lookup produced no row."""

    def __init__(self, model: Any, key_name: str, key_value: Any) -> None:
        self.model = _name_of(model)
        self.key_name = key_name
        self.key_value = key_value
        super().__init__(
            f"Could not find a record for {self.model} with {key_name} '{key_value}'"
        )


class NoResultsError(EntityNotFoundError):
    """Raised by fetch_first_or_fail when the query returned no rows."""

    def __init__(self, model: Any, sql: str) -> None:
        self.model = _name_of(model)
        self.key_name = ""
        self.key_value = None
        self.sql = sql
        MappingError.__init__(self, f"Query for {self.model} returned no results [SQL: {sql}]")


class ImmutableEntityError(MappingError):
    """Raised on any attempt to mutate a constructed entity."""

    def __init__(self, model: Any, attribute: str) -> None:
        self.model = _name_of(model)
        self.attribute = attribute
        super().__init__(f"Cannot modify '{attribute}' on {self.model}: entities are read-only")


class RelationshipDefinitionError(MappingError):
    """Raised when a relationship declaration does not produce a descriptor."""

    def __init__(self, model: Any, relationship: str, detail: str) -> None:
        self.model = _name_of(model)
        self.relationship = relationship
        super().__init__(f"{self.model}.{relationship} {detail}")


class UnknownRelationshipError(RelationshipDefinitionError):
    """Raised when a relationship name is not declared on the model type."""

    def __init__(self, model: Any, relationship: str) -> None:
        super().__init__(model, relationship, "is not a declared relationship")


class AttributeCastError(MappingError):
    """Raised when a raw column value cannot be cast to its declared type."""

    def __init__(self, attribute: str, detail: str) -> None:
        self.attribute = attribute
        super().__init__(f"Cannot cast attribute '{attribute}': {detail}")


# --- Adapter ---


class AdapterError(ReadModelsError):
    """Base for adapter and connection errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class ConnectionNotConfiguredError(AdapterError):
    """Raised when no engine is registered for a model type and there is no default."""

    def __init__(self, model: Any) -> None:
        self.model = _name_of(model)
        super().__init__(f"No connection configured for {self.model} and no default set")


class PoolError(AdapterError):
    """Raised on connection pool failures."""
