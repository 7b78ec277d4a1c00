"""
access.decision
~~~~~~~~~~~~~~~
Authorize an (environment, user) pair and record the attempt in the
environment's log queue.

An unknown environment leaves no trace: the log lives inside the
environment, so there is nowhere to record the attempt.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional

from .models import AccessLogEntry

if TYPE_CHECKING:
    from .logger import AuditLogger
    from .registry import Registry

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def record_access(
    registry: "Registry",
    environment_id: int,
    user_id: int,
    clock: Clock = datetime.now,
    audit: Optional["AuditLogger"] = None,
) -> bool:
    environment = registry.find_environment(environment_id)
    if environment is None:
        _report(audit, environment_id, user_id, False, "unknown_environment")
        return False

    user = registry.find_user(user_id)
    if user is None:
        granted, reason = False, "unknown_user"
    else:
        granted = user.has_permission(environment.id)
        reason = "permitted" if granted else "not_permitted"

    environment.logs.append(AccessLogEntry(clock(), user_id, granted))
    _report(audit, environment_id, user_id, granted, reason)
    return granted


def _report(
    audit: Optional["AuditLogger"],
    environment_id: int,
    user_id: int,
    granted: bool,
    reason: str,
) -> None:
    logger.debug("access env=%s user=%s granted=%s (%s)", environment_id, user_id, granted, reason)
    if audit is not None:
        audit.access(environment_id, user_id, granted, reason)
