from __future__ import annotations

import itertools
import threading
from typing import Optional


class IdentifierAllocator:
    """
    Hands out graph node uids. Values are strictly increasing and never reused
    for the lifetime of the allocator; the batch driver owns one instance and
    shares it across every document it processes.
    """

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()
        self._last: Optional[int] = None

    def next(self) -> int:
        with self._lock:
            self._last = next(self._counter)
            return self._last

    @property
    def last(self) -> Optional[int]:
        return self._last
