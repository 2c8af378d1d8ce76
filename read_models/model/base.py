"""Read-only model base.

A model type is a declaration: table naming, casts, default eager loads,
named scopes, and a ``relationships`` table. Instances are immutable
entities produced by a :class:`~read_models.model.builder.ModelBuilder`.
Hydration and relationship resolution are separate components
(:class:`Hydrator`, :class:`RelationshipResolver`) composed into the type.

Example::

    class User(Model):
        table = "users"
        external_primary_key = "uuid"
        casts = {"uuid": "uuid", "created_at": "datetime"}
        relationships = {
            "addresses": lambda user: user.has_many(UserAddress),
            "roles": lambda user: user.belongs_to_many(Role, "user_roles"),
        }

    with manager.unit_of_work():
        users = User.with_(manager, "addresses", "roles.permissions").fetch()
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from read_models.collection import Collection
from read_models.core.exceptions import ImmutableEntityError
from read_models.model.hydration import Hydrator
from read_models.model.metadata import ModelMetadata, metadata_for, snake_case
from read_models.model.resolver import RelationshipResolver
from read_models.relationships.base import AbstractRelationship
from read_models.relationships.belongs_to import BelongsTo
from read_models.relationships.belongs_to_many import BelongsToMany
from read_models.relationships.has_one import HasOne
from read_models.relationships.has_one_to_many import HasOneToMany

if TYPE_CHECKING:
    from read_models.manager import Manager
    from read_models.model.builder import ModelBuilder

RelationshipFactory = Callable[["Model"], AbstractRelationship]
Scope = Callable[..., Any]


class Model:
    """Base class for read-only entity types."""

    table: ClassVar[str | None] = None
    table_alias: ClassVar[str | None] = None
    primary_key: ClassVar[str] = "id"
    external_primary_key: ClassVar[str | None] = None
    foreign_key: ClassVar[str | None] = None
    casts: ClassVar[Mapping[str, Any]] = {}
    default_eager_loads: ClassVar[tuple[str, ...]] = ()
    relationships: ClassVar[Mapping[str, RelationshipFactory]] = {}
    scopes: ClassVar[Mapping[str, Scope]] = {}

    hydrator: ClassVar[Hydrator] = Hydrator()
    resolver: ClassVar[RelationshipResolver] = RelationshipResolver()

    __slots__ = ("_manager", "_attributes", "_relations", "_owning_key")

    def __init__(
        self,
        manager: Manager,
        attributes: Mapping[str, Any] | None = None,
        *,
        owning_key: str | None = None,
    ) -> None:
        cls = type(self)
        object.__setattr__(self, "_manager", manager)
        object.__setattr__(
            self, "_attributes", cls.hydrator.hydrate(manager, cls.casts, attributes or {})
        )
        object.__setattr__(self, "_relations", {})
        object.__setattr__(self, "_owning_key", owning_key)

    # --- static entry points ---

    @classmethod
    def query(cls, manager: Manager) -> ModelBuilder:
        """Start a new query with no constraints."""
        return cls(manager).new_query()

    @classmethod
    def with_(cls, manager: Manager, *relations: Any) -> ModelBuilder:
        """Start a query eager loading *relations* (dot notation loads nested relations)."""
        return cls.query(manager).with_(*relations)

    @classmethod
    def find(cls, manager: Manager, id: Any, *columns: str) -> Model | None:
        return cls.query(manager).find(id, *columns)

    @classmethod
    def find_or_fail(cls, manager: Manager, id: Any, *columns: str) -> Model:
        """Find by primary key.

        Raises:
            EntityNotFoundError: If no row matches.
        """
        return cls.query(manager).find_or_fail(id, *columns)

    @classmethod
    def find_by(
        cls,
        manager: Manager,
        criteria: Mapping[str, Any],
        order_by: Mapping[str, str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> Collection[Model]:
        return cls.query(manager).find_by(criteria, order_by, limit, offset)

    @classmethod
    def find_one_by(
        cls,
        manager: Manager,
        criteria: Mapping[str, Any],
        order_by: Mapping[str, str] | None = None,
    ) -> Model | None:
        return cls.query(manager).find_one_by(criteria, order_by)

    @classmethod
    def metadata(cls) -> ModelMetadata:
        return metadata_for(cls)

    # --- instance API ---

    def new_query(self) -> ModelBuilder:
        from read_models.model.builder import ModelBuilder

        builder = ModelBuilder(self)
        if self.default_eager_loads:
            builder.with_(*self.default_eager_loads)
        return builder

    def new(self, attributes: Mapping[str, Any] | None = None) -> Model:
        """Create another (unmapped) instance of this type in the same unit of work."""
        return type(self)(self._manager, attributes)

    @property
    def meta(self) -> ModelMetadata:
        return metadata_for(type(self))

    @property
    def manager(self) -> Manager:
        return self._manager

    @property
    def owning_key(self) -> str | None:
        """Foreign key name flagging the owner record, set on relationship templates."""
        return self._owning_key

    @property
    def primary_key_value(self) -> Any:
        return self._attributes.get(self.meta.primary_key)

    @property
    def external_primary_key_value(self) -> Any:
        name = self.meta.external_primary_key
        return self._attributes.get(name) if name else None

    def get_attributes(self) -> dict[str, Any]:
        return dict(self._attributes)

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    def get_attribute(self, name: str) -> Any:
        """Return an attribute, else a (possibly lazily loaded) relationship, else None."""
        if name in self._attributes:
            return self._attributes[name]
        if self.resolver.is_declared(type(self), name):
            return self.resolver.get_value(self, name)
        return None

    def get_relationship(self, name: str) -> AbstractRelationship:
        """Build the descriptor declared as *name*.

        Raises:
            RelationshipDefinitionError: If the declaration does not produce a descriptor.
        """
        return self.resolver.get_relationship(self, name)

    def is_relationship_loaded(self, name: str) -> bool:
        return name in self._relations

    def get_loaded_relationship(self, name: str) -> Any:
        return self._relations.get(name)

    def get_loaded_relationships(self) -> dict[str, Any]:
        return dict(self._relations)

    def set_relationship_value(self, name: str, value: Any) -> None:
        """Attach a resolved relationship value.

        Only relationship descriptors call this while merging results.
        """
        self._relations[name] = value

    # --- relationship declarations ---

    def belongs_to(
        self,
        related: type[Model],
        foreign_key: str | None = None,
        owner_key: str | None = None,
        relation: str | None = None,
        null_on_not_found: bool = True,
    ) -> BelongsTo:
        """Define the inverse side of a one-to-one or one-to-many relationship.

        This entity holds the foreign key, e.g. an address holding ``user_id``
        belongs to a user. Without *foreign_key* the related type's foreign key
        is used, or ``<relation>_<pk>`` when *relation* is given.
        """
        instance = related(self._manager)
        if foreign_key is None:
            foreign_key = (
                f"{snake_case(relation)}_{instance.meta.primary_key}"
                if relation
                else instance.meta.foreign_key
            )
        owner_key = owner_key or instance.meta.primary_key

        return BelongsTo(instance.new_query(), self, foreign_key, owner_key, null_on_not_found)

    def belongs_to_many(
        self,
        related: type[Model],
        table: str,
        table_source_key: str | None = None,
        table_target_key: str | None = None,
        source_key: str | None = None,
        target_key: str | None = None,
    ) -> BelongsToMany:
        """Define a many-to-many relationship through the joining *table*.

        For users and roles linked by ``user_roles(user_id, role_id)`` the
        source key is ``user_id`` and the target key ``role_id``. The joining
        table is never guessed.
        """
        instance = related(self._manager)
        table_source_key = table_source_key or self.meta.foreign_key
        table_target_key = table_target_key or instance.meta.foreign_key
        source_key = source_key or self.meta.primary_key
        target_key = target_key or instance.meta.primary_key

        identity_map = self._manager.map
        identity_map.register_alias(self, table_source_key)
        identity_map.register_alias(instance, table_target_key)

        return BelongsToMany(
            instance.new_query(),
            self,
            table,
            table_source_key,
            table_target_key,
            source_key,
            target_key,
        )

    def has_many(
        self,
        related: type[Model],
        foreign_key: str | None = None,
        local_key: str | None = None,
        index_by: str | None = None,
    ) -> HasOneToMany:
        """Define a one-to-many relationship.

        *foreign_key* is this entity's key as it appears in the related table.
        With *index_by* the resulting collection is keyed by that related
        column; only one related entity per key value is kept.
        """
        foreign_key = foreign_key or self.meta.foreign_key
        local_key = local_key or self.meta.primary_key
        instance = related(self._manager, owning_key=foreign_key)

        return HasOneToMany(
            instance.new_query(),
            self,
            instance.meta.prefix_alias(foreign_key),
            local_key,
            index_by,
        )

    def has_one(
        self,
        related: type[Model],
        foreign_key: str | None = None,
        local_key: str | None = None,
        null_on_not_found: bool = True,
    ) -> HasOne:
        """Define a one-to-one relationship; only the first related row is used."""
        foreign_key = foreign_key or self.meta.foreign_key
        local_key = local_key or self.meta.primary_key
        instance = related(self._manager, owning_key=foreign_key)

        return HasOne(
            instance.new_query(),
            self,
            instance.meta.prefix_alias(foreign_key),
            local_key,
            null_on_not_found,
        )

    # --- dunder ---

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._attributes:
            return self._attributes[name]
        if self.resolver.is_declared(type(self), name):
            return self.resolver.get_value(self, name)
        raise AttributeError(f"{type(self).__name__} has no attribute or relationship '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        raise ImmutableEntityError(self, name)

    def __delattr__(self, name: str) -> None:
        raise ImmutableEntityError(self, name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.meta.primary_key}={self.primary_key_value!r}>"

