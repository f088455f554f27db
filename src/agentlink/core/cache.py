"""Capacity-bounded set with FIFO eviction.

Used for message-id deduplication and payment idempotency keys.  Once
more than ``capacity`` entries have been added, the oldest-inserted entry
is evicted.  An evicted key is forgotten: if it is seen again it is
treated as new.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Hashable, Iterator
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)


class BoundedFifoSet(Generic[K]):
    """Insertion-ordered set holding at most *capacity* keys."""

    def __init__(self, capacity: int = 100) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._keys: OrderedDict[K, None] = OrderedDict()

    def add(self, key: K) -> bool:
        """Insert *key*; return ``False`` if it was already present.

        Re-adding a present key does not refresh its position.
        """
        if key in self._keys:
            return False
        self._keys[key] = None
        while len(self._keys) > self.capacity:
            self._keys.popitem(last=False)
        return True

    def discard(self, key: K) -> None:
        self._keys.pop(key, None)

    def clear(self) -> None:
        self._keys.clear()

    def oldest(self) -> K | None:
        """Return the next key to be evicted, or ``None`` when empty."""
        return next(iter(self._keys), None)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[K]:
        return iter(self._keys)
