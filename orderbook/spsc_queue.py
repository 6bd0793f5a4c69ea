"""A bounded FIFO queue that hands values from a producer thread to a consumer thread."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, Optional, TypeVar

T = TypeVar("T")


class QueueEmpty(Exception):
    """Raised when a value is requested from an empty queue."""


class SPSCQueue(Generic[T]):
    """Bounded ring-style queue.

    Like a ring buffer of ``capacity`` slots with one slot kept free, it holds
    at most ``capacity - 1`` values at a time.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._items: Deque[T] = deque()
        self._cond = threading.Condition()

    @property
    def capacity(self) -> int:
        return self._capacity

    def _is_full(self) -> bool:
        return len(self._items) >= self._capacity - 1

    def push(self, value: T) -> bool:
        """Append ``value`` if there is room; return whether it was stored."""
        with self._cond:
            if self._is_full():
                return False
            self._items.append(value)
            self._cond.notify_all()
            return True

    def push_wait(self, value: T, timeout: Optional[float]) -> bool:
        """Append ``value``, waiting up to ``timeout`` seconds for room.

        ``timeout=None`` waits without limit. Returns whether it was stored.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: not self._is_full(), timeout):
                return False
            self._items.append(value)
            self._cond.notify_all()
            return True

    def pop(self) -> T:
        """Remove and return the oldest value; raise QueueEmpty if there is none."""
        with self._cond:
            if not self._items:
                raise QueueEmpty("queue is empty")
            value = self._items.popleft()
            self._cond.notify_all()
            return value

    def pop_wait(self, timeout: Optional[float]) -> T:
        """Remove and return the oldest value, waiting up to ``timeout`` seconds.

        ``timeout=None`` waits without limit. Raises QueueEmpty on timeout.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: bool(self._items), timeout):
                raise QueueEmpty("timed out waiting for a value")
            value = self._items.popleft()
            self._cond.notify_all()
            return value

    def empty(self) -> bool:
        with self._cond:
            return not self._items

    def full(self) -> bool:
        with self._cond:
            return self._is_full()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)