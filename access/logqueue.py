"""
access.logqueue
~~~~~~~~~~~~~~~
Fixed-capacity FIFO of access attempts owned by one environment.
Appending to a full queue drops the oldest entry.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Deque, Iterable, Iterator, List, Optional

if TYPE_CHECKING:
    from .models import AccessLogEntry

CAPACITY = 100


class LogQueue:
    capacity = CAPACITY

    def __init__(self, entries: Iterable["AccessLogEntry"] = ()) -> None:
        self._entries: Deque["AccessLogEntry"] = deque(entries, maxlen=self.capacity)

    def append(self, entry: "AccessLogEntry") -> None:
        self._entries.append(entry)  # deque(maxlen) evicts from the left

    def snapshot(self) -> List["AccessLogEntry"]:
        """Current contents, oldest first."""
        return list(self._entries)

    def replace_from_history(self, entries: Iterable["AccessLogEntry"]) -> None:
        """Install a loaded history, keeping only the last ``capacity`` entries."""
        self._entries = deque(entries, maxlen=self.capacity)

    def filter(self, granted: Optional[bool] = None) -> List["AccessLogEntry"]:
        if granted is None:
            return self.snapshot()
        return [e for e in self._entries if e.granted is granted]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator["AccessLogEntry"]:
        return iter(self.snapshot())
