"""Domain models for per-second flow aggregates."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class Bucket:
    """Samples received for one flow during one second."""

    count: int = 0
    sum: float = 0.0

    def accumulate(self, value: float) -> None:
        self.count += 1
        self.sum += value

    def reset(self) -> None:
        self.count = 0
        self.sum = 0.0

    def copy(self) -> "Bucket":
        return Bucket(self.count, self.sum)


@dataclass(frozen=True, slots=True)
class WindowStats:
    """Totals over the trailing buckets covered by a window."""

    window: int
    count: int
    sum: float

    @property
    def average(self) -> Optional[float]:
        if self.count == 0:
            return None
        return self.sum / self.count


class FlowBuffer:
    """Fixed-capacity ring of per-second buckets.

    ``head`` indexes the bucket of the currently open second. ``advance``
    moves the cursor forward and clears the bucket it lands on, which is the
    one that has just become ``capacity`` seconds old. The class does no
    locking of its own; callers serialize access (see ``Flow``).
    """

    __slots__ = ("_buckets", "_head", "_capacity")

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._buckets = [Bucket() for _ in range(capacity)]
        self._head = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def head(self) -> int:
        return self._head

    @property
    def buckets(self) -> tuple[Bucket, ...]:
        """Copies of all buckets in storage order."""
        return tuple(bucket.copy() for bucket in self._buckets)

    def add_sample(self, value: float) -> None:
        self._buckets[self._head].accumulate(value)

    def advance(self) -> None:
        self._head = (self._head + 1) % self._capacity
        self._buckets[self._head].reset()

    def window_stats(self, window: int) -> WindowStats:
        """Sum the current bucket and the ``window - 1`` before it."""

        window = min(max(window, 0), self._capacity)
        count, total = 0, 0.0
        for i in range(window):
            bucket = self._buckets[(self._capacity + self._head - i) % self._capacity]
            count += bucket.count
            total += bucket.sum
        return WindowStats(window=window, count=count, sum=total)

    def window_average(self, window: int) -> Optional[float]:
        """Moving average over the window, or None when it holds no samples."""
        return self.window_stats(window).average
