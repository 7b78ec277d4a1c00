"""
access.registry
~~~~~~~~~~~~~~~
In-memory owner of all users and environments plus the permission
relation between them.

Lookups that miss return ``None`` or a falsy result; nothing here raises
for an unknown id.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .codec import FlatFileStore
from .decision import Clock, record_access
from .logger import AuditLogger
from .models import Environment, User

logger = logging.getLogger(__name__)


class Removal(enum.Enum):
    REMOVED = "removed"
    NOT_FOUND = "not_found"
    BLOCKED = "blocked"  # user still holds permissions

    def __bool__(self) -> bool:
        return self is Removal.REMOVED


class Registry:
    def __init__(
        self,
        data_dir: str | Path | None = None,
        audit: Optional[AuditLogger] = None,
        clock: Clock = datetime.now,
    ) -> None:
        self.store = FlatFileStore(data_dir)
        self.audit = audit
        self.clock = clock
        self._users: Dict[int, User] = {}
        self._environments: Dict[int, Environment] = {}

    # ------------------------------------------------------------------ #
    # users
    # ------------------------------------------------------------------ #

    @property
    def users(self) -> List[User]:
        return list(self._users.values())

    def add_user(self, user_id: int, name: str) -> User:
        """Insert a user; an existing id is left untouched and returned."""
        existing = self._users.get(user_id)
        if existing is not None:
            logger.debug("user %s already exists, add ignored", user_id)
            return existing
        user = self._users[user_id] = User(user_id, name)
        self._audit("user_added", user=user_id)
        return user

    def remove_user(self, user_id: int) -> Removal:
        user = self._users.get(user_id)
        if user is None:
            return Removal.NOT_FOUND
        if user.permissions:
            return Removal.BLOCKED
        del self._users[user_id]
        self._audit("user_removed", user=user_id)
        return Removal.REMOVED

    def find_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    def next_user_id(self) -> int:
        return max(self._users, default=0) + 1

    # ------------------------------------------------------------------ #
    # environments
    # ------------------------------------------------------------------ #

    @property
    def environments(self) -> List[Environment]:
        return list(self._environments.values())

    def add_environment(self, environment_id: int, name: str) -> Environment:
        existing = self._environments.get(environment_id)
        if existing is not None:
            logger.debug("environment %s already exists, add ignored", environment_id)
            return existing
        env = self._environments[environment_id] = Environment(environment_id, name)
        self._audit("environment_added", environment=environment_id)
        return env

    def remove_environment(self, environment_id: int) -> Removal:
        """Remove an environment, revoking it from every user first."""
        if environment_id not in self._environments:
            return Removal.NOT_FOUND
        for user in self._users.values():
            user.revoke(environment_id)
        del self._environments[environment_id]
        self._audit("environment_removed", environment=environment_id)
        return Removal.REMOVED

    def find_environment(self, environment_id: int) -> Optional[Environment]:
        return self._environments.get(environment_id)

    def next_environment_id(self) -> int:
        return max(self._environments, default=0) + 1

    # ------------------------------------------------------------------ #
    # permissions & access
    # ------------------------------------------------------------------ #

    def grant_permission(self, user_id: int, environment_id: int) -> bool:
        user = self._users.get(user_id)
        if user is None or environment_id not in self._environments:
            return False
        if not user.grant(environment_id):
            return False
        self._audit("permission_granted", user=user_id, environment=environment_id)
        return True

    def revoke_permission(self, user_id: int, environment_id: int) -> bool:
        user = self._users.get(user_id)
        if user is None or not user.revoke(environment_id):
            return False
        self._audit("permission_revoked", user=user_id, environment=environment_id)
        return True

    def record_access(self, environment_id: int, user_id: int) -> bool:
        return record_access(self, environment_id, user_id, clock=self.clock, audit=self.audit)

    # ------------------------------------------------------------------ #
    # persistence
    # ------------------------------------------------------------------ #

    def load_all(self) -> None:
        """Replace the in-memory state with the persisted one."""
        users, environments = self.store.load()
        self._users = {u.id: u for u in users}
        self._environments = {e.id: e for e in environments}
        logger.info(
            "loaded %d users, %d environments from %s",
            len(self._users), len(self._environments), self.store.directory,
        )

    def save_all(self) -> None:
        self.store.save(self.users, self.environments)
        self._audit("saved", users=len(self._users), environments=len(self._environments))

    def _audit(self, event: str, **fields) -> None:
        if self.audit is not None:
            self.audit.change(event, **fields)
