r"""Thread-safe local storage backing the metadata cache and the registries."""

from __future__ import annotations

from threading import RLock
from typing import Callable, Dict, Generic, Hashable, Iterator, MutableMapping, TypeVar

__all__ = ["ThreadSafeLocalStorage"]

KeyType = TypeVar("KeyType", bound=Hashable)
ValType = TypeVar("ValType")

class ThreadSafeLocalStorage(
    MutableMapping[KeyType, ValType], Generic[KeyType, ValType]
):
    """Thread-safe local storage with single-write multi-read semantics."""

    def __init__(self):
        self._storage: Dict[KeyType, ValType] = {}
        self._lock = RLock()

    def __getitem__(self, key: KeyType) -> ValType:
        with self._lock:
            return self._storage[key]

    def __setitem__(self, key: KeyType, value: ValType) -> None:
        with self._lock:
            self._storage[key] = value

    def __delitem__(self, key: KeyType) -> None:
        with self._lock:
            del self._storage[key]

    def __iter__(self) -> Iterator[KeyType]:
        with self._lock:
            return iter(list(self._storage.keys()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._storage

    def get_or_compute(self, key: KeyType, factory: Callable[[], ValType]) -> ValType:
        """Return the stored value for `key`, computing and storing it if absent.

        `factory` runs outside the lock, so two threads asking for the same
        missing key may both compute it. The first stored value wins and both
        callers receive it; factories must therefore be pure.
        """
        with self._lock:
            if key in self._storage:
                return self._storage[key]
        value = factory()
        with self._lock:
            return self._storage.setdefault(key, value)

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()

    def snapshot(self) -> Dict[KeyType, ValType]:
        """Return a copy of the stored entries, taken under the lock."""
        with self._lock:
            return dict(self._storage)
