"""Result collection.

An ordered, optionally keyed, container of entities. Keys default to
consecutive integers; relationships declared with ``index_by`` key members by
a column value instead.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def _value_of(item: Any, key: str) -> Any:
    if isinstance(item, dict):
        return item.get(key)
    getter = getattr(item, "get_attribute", None)
    if getter is not None:
        return getter(key)
    return getattr(item, key, None)


class Collection(Generic[T]):
    """Ordered collection of results.

    Iteration yields values, never keys. Integer indexing on an unkeyed
    collection behaves like a list.
    """

    __slots__ = ("_items", "_next_index")

    def __init__(self, items: Iterable[T] | dict[Any, T] | None = None) -> None:
        self._items: dict[Any, T] = {}
        self._next_index = 0
        if isinstance(items, dict):
            for key, value in items.items():
                self.set(key, value)
        elif items is not None:
            for item in items:
                self.add(item)

    @classmethod
    def collect(cls, items: Iterable[T] | dict[Any, T] | None = None) -> Collection[T]:
        return items if isinstance(items, Collection) else cls(items)

    def add(self, item: T) -> Collection[T]:
        """Append *item* under the next integer key."""
        while self._next_index in self._items:
            self._next_index += 1
        self._items[self._next_index] = item
        self._next_index += 1
        return self

    def set(self, key: Any, item: T) -> Collection[T]:
        """Store *item* under *key*, replacing any existing member with that key."""
        self._items[key] = item
        return self

    def get(self, key: Any, default: T | None = None) -> T | None:
        return self._items.get(key, default)

    def has(self, key: Any) -> bool:
        return key in self._items

    def keys(self) -> list[Any]:
        return list(self._items)

    def first(self) -> T | None:
        return next(iter(self._items.values()), None)

    def last(self) -> T | None:
        return next(reversed(self._items.values()), None) if self._items else None

    def count(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def extract(self, key: str) -> Collection[Any]:
        """Collect the value of attribute *key* from every member."""
        return Collection(_value_of(item, key) for item in self._items.values())

    def unique(self) -> Collection[T]:
        """Return members with duplicates (by equality, or identity if unhashable) removed."""
        seen: list[Any] = []
        hashed: set[Any] = set()
        result: Collection[T] = Collection()
        for item in self._items.values():
            try:
                if item in hashed:
                    continue
                hashed.add(item)
            except TypeError:
                if any(item is s for s in seen):
                    continue
                seen.append(item)
            result.add(item)
        return result

    def filter(self, predicate: Callable[[T], bool] | None = None) -> Collection[T]:
        """Keep members matching *predicate* (or truthy members), preserving keys."""
        check = predicate or bool
        return Collection({k: v for k, v in self._items.items() if check(v)})

    def map(self, fn: Callable[[T], Any]) -> Collection[Any]:
        return Collection({k: fn(v) for k, v in self._items.items()})

    def each(self, fn: Callable[[T], Any]) -> Collection[T]:
        for item in self._items.values():
            fn(item)
        return self

    def to_list(self) -> list[T]:
        return list(self._items.values())

    def to_dict(self) -> dict[Any, T]:
        return dict(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __contains__(self, item: object) -> bool:
        return any(item is v or item == v for v in self._items.values())

    def __getitem__(self, key: Any) -> T:
        return self._items[key]

    def __repr__(self) -> str:
        return f"Collection({self.to_list()!r})"
