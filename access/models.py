"""
access.models
~~~~~~~~~~~~~
Plain records for the registry: users, environments and the access log
entries kept inside each environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Set

from .logqueue import LogQueue


@dataclass(frozen=True, slots=True)
class AccessLogEntry:
    timestamp: datetime
    user_id: int
    granted: bool

    def __post_init__(self) -> None:
        # second resolution, matches the persisted format
        if self.timestamp.microsecond:
            object.__setattr__(self, "timestamp", self.timestamp.replace(microsecond=0))

    def __str__(self) -> str:
        outcome = "GRANTED" if self.granted else "DENIED"
        return f"{self.timestamp:%Y-%m-%d %H:%M:%S} - user {self.user_id} - {outcome}"


@dataclass(eq=False)
class User:
    """A person that may be granted access to environments.

    Only environment *ids* are held here; the registry resolves them.
    """

    id: int
    name: str
    _permissions: Set[int] = field(default_factory=set, repr=False)

    @property
    def permissions(self) -> List[int]:
        return sorted(self._permissions)

    def has_permission(self, environment_id: int) -> bool:
        return environment_id in self._permissions

    def grant(self, environment_id: int) -> bool:
        """Return False if the permission was already held."""
        if environment_id in self._permissions:
            return False
        self._permissions.add(environment_id)
        return True

    def revoke(self, environment_id: int) -> bool:
        """Return False if the permission was not held."""
        if environment_id not in self._permissions:
            return False
        self._permissions.discard(environment_id)
        return True

    def __str__(self) -> str:
        granted = ", ".join(str(i) for i in self.permissions) or "(none)"
        return f"[{self.id}] {self.name} - permissions: {granted}"


@dataclass(eq=False)
class Environment:
    id: int
    name: str
    logs: LogQueue = field(default_factory=LogQueue, repr=False)

    def __str__(self) -> str:
        return f"[{self.id}] {self.name} - stored logs: {len(self.logs)}"
