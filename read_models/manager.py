"""Unit-of-work context.

A :class:`Manager` is created per unit of work (request, job, test) and passed
explicitly to every entry point. It owns that unit's identity map and caster
and refers to a :class:`ConnectionRegistry`, which may be shared between
managers.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from read_models.casting import AttributeCaster
from read_models.core.connection import ConnectionConfig
from read_models.core.engine import Engine
from read_models.core.exceptions import ConnectionNotConfiguredError
from read_models.identity_map import IdentityMap


class ConnectionRegistry:
    """Maps model types to the engine that serves them.

    Lookups walk the model's MRO, so registering an engine for a base class
    covers its subclasses.
    """

    def __init__(self, default: Engine | None = None) -> None:
        self._default = default
        self._engines: dict[type, Engine] = {}

    def add(self, engine: Engine, for_model: type | None = None) -> ConnectionRegistry:
        if for_model is None:
            self._default = engine
        else:
            self._engines[for_model] = engine
        return self

    def for_model(self, model: Any) -> Engine:
        cls = model if isinstance(model, type) else type(model)
        for klass in cls.__mro__:
            if klass in self._engines:
                return self._engines[klass]
        if self._default is None:
            raise ConnectionNotConfiguredError(cls)
        return self._default

    @property
    def default(self) -> Engine | None:
        return self._default

    def close(self) -> None:
        """Close every registered engine's pool."""
        engines = {id(e): e for e in self._engines.values()}
        if self._default is not None:
            engines[id(self._default)] = self._default
        for engine in engines.values():
            engine.close()


class Manager:
    """Per unit-of-work context: identity map, caster and connections.

    Args:
        connections: Registry (or a single default Engine).
        caster: Attribute caster; a default one is created when omitted.
    """

    def __init__(
        self,
        connections: ConnectionRegistry | Engine,
        caster: AttributeCaster | None = None,
    ) -> None:
        if isinstance(connections, Engine):
            connections = ConnectionRegistry(connections)
        self._connections = connections
        self._caster = caster or AttributeCaster()
        self._map = IdentityMap()

    @classmethod
    def from_config(cls, config: ConnectionConfig, caster: AttributeCaster | None = None) -> Manager:
        """Create a Manager with a single default engine built from *config*."""
        return cls(ConnectionRegistry(Engine.from_config(config)), caster)

    @property
    def connections(self) -> ConnectionRegistry:
        return self._connections

    @property
    def caster(self) -> AttributeCaster:
        return self._caster

    @property
    def map(self) -> IdentityMap:
        return self._map

    def connection(self, model: Any) -> Engine:
        """Return the engine serving *model* (a type or an instance)."""
        return self._connections.for_model(model)

    def clear(self) -> None:
        """End the current unit of work: forget every mapped entity and edge."""
        self._map.clear()

    @contextmanager
    def unit_of_work(self) -> Iterator[Manager]:
        """Context manager clearing the identity map on exit."""
        try:
            yield self
        finally:
            self.clear()
