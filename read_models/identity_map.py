"""Identity map and relationship edge registry.

One ``IdentityMap`` lives inside each :class:`~read_models.manager.Manager`
and holds, for that unit of work:

* every materialised entity, keyed by type and by its primary (and external)
  key, so a logical row is only ever represented by one instance;
* the relationship edges inferred from query rows:
  ``source type -> source id -> target type -> {target id}``;
* the alias table mapping a foreign-key / marker name to the type that owns it.

Identities are compared as strings. The map is append-only and holds no lock;
call :meth:`IdentityMap.clear` at the end of each unit of work.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, MutableMapping
from typing import TYPE_CHECKING, Any

from read_models.core.markers import RELATIONSHIP_SOURCE_MODEL_REF, source_ref_column

if TYPE_CHECKING:
    from read_models.model.base import Model

logger = logging.getLogger(__name__)

# Ordered "sets": dict keys keep the order edges were discovered in
_Edges = dict[type, dict[str, dict[type, dict[str, None]]]]


class IdentityMap:
    """Scoped store of entities plus inferred relationship edges."""

    def __init__(self) -> None:
        self._identity_map: dict[type, dict[str, Model]] = {}
        self._aliases: dict[str, type] = {}
        self._relationships: _Edges = {}

    # --- aliases ---

    def has_alias(self, alias: str) -> bool:
        return alias in self._aliases

    def register_alias(self, model: Model, foreign_key_name: str | None = None) -> None:
        """Register a foreign key (or join-table column) name as owned by *model*'s type.

        Defaults to the type's canonical foreign key, e.g. ``User`` -> ``user_id``.
        The first registration of a name wins; later ones are ignored, so two
        types sharing a foreign-key name resolve to whichever registered first.
        """
        key = foreign_key_name or model.meta.foreign_key
        owner = type(model)

        if key not in self._aliases:
            self._aliases[key] = owner
        elif self._aliases[key] is not owner:
            logger.debug(
                "Alias '%s' already owned by %s; ignoring %s",
                key,
                self._aliases[key].__name__,
                owner.__name__,
            )

    # --- relationship edges ---

    def register_relationship(
        self, source: type, source_id: Any, target: type, target_id: Any
    ) -> None:
        """Record that *source_id* of type *source* is related to *target_id* of *target*."""
        targets = self._relationships.setdefault(source, {}).setdefault(str(source_id), {})
        targets.setdefault(target, {})[str(target_id)] = None

    def infer_relationship_from_attributes(
        self, model: Model, attributes: MutableMapping[str, Any]
    ) -> None:
        """Record relationship edges carried by a freshly decoded row.

        *model* is the (template) entity the row is being decoded for, e.g.
        the ``Role`` side when loading a user's roles. Columns recognised as
        relationship markers are:

        * ``__srm_src_ref__<join table>__<join column>``: the join column
          resolves the source type through the alias table;
        * ``__srm_src_ref``: the source identity for the model's owning key;
        * the model's own foreign key, or the owning key set by the
          relationship that built the query.

        Marker columns are removed from *attributes* in place. Columns whose
        name is not a registered alias are not relationship markers and are
        skipped.
        """
        owning_key = model.owning_key
        foreign_key = model.meta.foreign_key
        target = type(model)
        target_id = attributes.get(model.meta.primary_key)

        for key in list(attributes):
            value = attributes[key]
            ref: str | None = None

            if key.startswith(RELATIONSHIP_SOURCE_MODEL_REF):
                del attributes[key]
                if key == RELATIONSHIP_SOURCE_MODEL_REF:
                    ref = owning_key
                else:
                    ref = source_ref_column(key)
            elif key == foreign_key or key == owning_key:
                ref = key

            if ref is None or value is None or target_id is None:
                continue

            source = self._aliases.get(ref)
            if source is None:
                continue

            self.register_relationship(source, value, target, target_id)

    def get_related_identities_for(
        self, model: Model, related: type | None = None
    ) -> Any:
        """Return the identities related to *model*.

        With *related*, returns the list of that type's identities; otherwise
        the full ``type -> identities`` mapping. Edges recorded against the
        external key are preferred, then those against the primary key.
        """
        edges = self._relationships.get(type(model), {})
        candidates = [model.external_primary_key_value, model.primary_key_value]

        for identity in candidates:
            if identity is None:
                continue
            per_type = edges.get(str(identity))
            if per_type is None:
                continue
            if related is None:
                return {cls: list(ids) for cls, ids in per_type.items()}
            if related in per_type:
                return list(per_type[related])

        return [] if related is not None else {}

    def related_identities(self, source: type, source_id: Any, target: type) -> list[str]:
        """Return target identities recorded against a raw source key value."""
        if source_id is None:
            return []
        return list(
            self._relationships.get(source, {}).get(str(source_id), {}).get(target, {})
        )

    # --- entities ---

    def add(self, model: Model) -> None:
        """Store *model* unless an instance with the same primary key is already mapped."""
        cls = type(model)
        identity = model.primary_key_value

        if self.has(cls, identity):
            return

        entities = self._identity_map.setdefault(cls, {})
        entities[str(identity)] = model

        external = model.external_primary_key_value
        if external is not None:
            entities.setdefault(str(external), model)

    def all(self, cls: type, ids: Iterable[Any]) -> list[Model]:
        """Return mapped entities of *cls* for *ids*, in the order of *ids*."""
        entities = self._identity_map.get(cls)
        if not entities:
            return []

        found: list[Model] = []
        seen: set[int] = set()
        for identity in ids:
            model = entities.get(str(identity))
            if model is not None and id(model) not in seen:
                seen.add(id(model))
                found.append(model)
        return found

    def get(self, cls: type, identity: Any) -> Model | None:
        return self._identity_map.get(cls, {}).get(str(identity))

    def has(self, cls: type, identity: Any) -> bool:
        return str(identity) in self._identity_map.get(cls, {})

    def clear(self) -> None:
        """Remove all entities, edges and aliases.

        Call at the end of every unit of work (request, job) in long-running
        processes.
        """
        if self._identity_map or self._relationships or self._aliases:
            logger.debug("Clearing identity map holding %d entities", self.count())
        self._identity_map = {}
        self._relationships = {}
        self._aliases = {}

    def count(self) -> int:
        """Number of distinct mapped entities across all types."""
        return sum(
            len({id(model) for model in entities.values()})
            for entities in self._identity_map.values()
        )

    @property
    def aliases(self) -> dict[str, type]:
        return dict(self._aliases)

    @property
    def relationships(self) -> _Edges:
        return self._relationships

    def __len__(self) -> int:
        return self.count()
