"""Fixed-size pool of service channels."""

from __future__ import annotations

from typing import List, Optional, Tuple


class ChannelPool:
    """
    Ordered busy/free flags for ``n`` channels.

    The pool does no locking of its own: the owning ``Server`` calls it only
    while holding its lock, which makes ``claim`` (scan + mark busy) atomic.
    """

    def __init__(self, n: int):
        if n < 1:
            raise ValueError("Number of channels n must be >= 1.")
        self._slots: List[bool] = [False] * n

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def busy_count(self) -> int:
        return sum(self._slots)

    def is_busy(self, index: int) -> bool:
        return self._slots[index]

    def all_free(self) -> bool:
        return not any(self._slots)

    def occupancy(self) -> Tuple[bool, ...]:
        """Immutable copy of the current flags."""
        return tuple(self._slots)

    def claim(self) -> Optional[int]:
        """Mark the lowest-index free channel busy and return it, or None."""
        for index, busy in enumerate(self._slots):
            if not busy:
                self._slots[index] = True
                return index
        return None

    def release(self, index: int) -> None:
        if not self._slots[index]:
            raise RuntimeError(f"Channel {index} released while already free.")
        self._slots[index] = False
