"""
Snapshot Cache - Single time-stamped slot for the latest snapshot.

Constructed once per process and handed to the engine. The clock is
injectable so freshness can be tested without sleeping.
"""

import time
from typing import Callable, Optional

from .models import ValidatorSnapshot


class SnapshotCache:
    """
    Holds the last computed snapshot for a fixed freshness window.

    A read within the window returns the stored snapshot; outside it the
    caller is expected to recompute and set() a new one.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._snapshot: Optional[ValidatorSnapshot] = None
        self._stored_at: Optional[float] = None

    def is_fresh(self) -> bool:
        if self._snapshot is None or self._stored_at is None:
            return False
        return self._clock() - self._stored_at < self.ttl_seconds

    def get(self) -> Optional[ValidatorSnapshot]:
        """Return the cached snapshot if still fresh, else None."""
        if not self.is_fresh():
            return None
        return self._snapshot

    def set(self, snapshot: ValidatorSnapshot) -> None:
        self._snapshot = snapshot
        self._stored_at = self._clock()

    def clear(self) -> None:
        self._snapshot = None
        self._stored_at = None

    @property
    def age_seconds(self) -> Optional[float]:
        if self._stored_at is None:
            return None
        return self._clock() - self._stored_at
