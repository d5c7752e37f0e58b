from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Generic, TypeVar

T = TypeVar("T")


class WorkingSet(Generic[T]):
    """
    In-memory entities of one batch, keyed by identity, in insertion order.

    At most one object exists per identity: every event that references the
    same id gets the same object back from `get_or_create`.
    """

    def __init__(self, preloaded: Mapping[str, T] | None = None) -> None:
        self._items: dict[str, T] = dict(preloaded or {})

    def get(self, key: str) -> T | None:
        return self._items.get(key)

    def get_or_create(self, key: str, factory: Callable[[], T]) -> T:
        item = self._items.get(key)
        if item is None:
            item = factory()
            self._items[key] = item
        return item

    def add(self, key: str, item: T) -> None:
        self._items[key] = item

    def values(self) -> list[T]:
        return list(self._items.values())

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)
