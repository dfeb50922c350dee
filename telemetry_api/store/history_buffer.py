from __future__ import annotations

from collections import deque
from typing import Deque, Generic, List, TypeVar

T = TypeVar("T")


class HistoryBuffer(Generic[T]):
    """Buffer FIFO acotado por categoría.

    - ``len(buffer) <= capacity`` siempre.
    - Al llenarse se descarta el más antiguo antes de añadir el nuevo.

    No es thread-safe: el dueño (``TelemetryStore``) serializa el acceso.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = int(capacity)
        self._items: Deque[T] = deque()
        self._evicted = 0

    def append(self, item: T) -> None:
        if len(self._items) >= self._capacity:
            self._items.popleft()
            self._evicted += 1
        self._items.append(item)

    def tail(self, limit: int) -> List[T]:
        """Últimos ``limit`` items en orden de inserción.

        ``limit`` se acota a ``[0, len]``.
        """
        limit = max(0, min(int(limit), len(self._items)))
        if limit == 0:
            return []
        return list(self._items)[-limit:]

    def snapshot(self) -> List[T]:
        return list(self._items)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def evicted(self) -> int:
        return self._evicted

    def __len__(self) -> int:
        return len(self._items)
