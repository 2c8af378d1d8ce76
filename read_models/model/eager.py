"""Eager-load plans.

A plan is an ordered mapping of dot-separated relationship paths to an
optional constraint callback. Registering ``"roles.permissions"`` also
registers ``"roles"``, so every nested path has a loaded parent.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

Constraint = Callable[[Any], Any]

SEPARATOR = "."


class EagerLoadPlan:
    """Ordered set of relationship paths to eager load."""

    def __init__(self, *relations: Any) -> None:
        self._paths: dict[str, Constraint | None] = {}
        self.merge(*relations)

    def merge(self, *relations: Any) -> EagerLoadPlan:
        """Add paths from strings, ``{path: callback}`` mappings, sequences or plans.

        A callback registered for a path replaces any previous one; a bare
        path never removes an existing callback.
        """
        for relation in relations:
            if relation is None:
                continue
            if isinstance(relation, EagerLoadPlan):
                self.merge(dict(relation.items()))
            elif isinstance(relation, str):
                self._add(relation, None)
            elif isinstance(relation, Mapping):
                for path, constraint in relation.items():
                    self._add(path, constraint)
            elif isinstance(relation, (list, tuple, set, frozenset)):
                self.merge(*relation)
            else:
                raise TypeError(
                    f"eager loads must be names, mappings or sequences, got {type(relation).__name__}"
                )
        return self

    def _add(self, path: str, constraint: Constraint | None) -> None:
        path = path.strip()
        if not path:
            return

        segments = path.split(SEPARATOR)
        for depth in range(1, len(segments)):
            self._paths.setdefault(SEPARATOR.join(segments[:depth]), None)

        if constraint is not None or path not in self._paths:
            self._paths[path] = constraint

    def top_level(self) -> list[tuple[str, Constraint | None]]:
        """Top-level relationships in registration order."""
        return [(name, cb) for name, cb in self._paths.items() if SEPARATOR not in name]

    def nested_for(self, name: str) -> EagerLoadPlan:
        """Return the sub-plan below *name*, with the ``name.`` prefix stripped."""
        prefix = name + SEPARATOR
        nested = EagerLoadPlan()
        for path, constraint in self._paths.items():
            if path.startswith(prefix):
                nested._paths[path[len(prefix):]] = constraint
        return nested

    def items(self) -> list[tuple[str, Constraint | None]]:
        return list(self._paths.items())

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __repr__(self) -> str:
        return f"EagerLoadPlan({list(self._paths)!r})"
