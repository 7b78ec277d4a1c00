"""
access.logger
~~~~~~~~~~~~~
JSON-lines audit trail of registry changes and access decisions, rotated
daily.  This is the operator-side record; the per-environment log queue
remains the persisted history.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_ISO = "%Y-%m-%dT%H:%M:%SZ"


def _now() -> str:  # RFC-3339 without microseconds
    return datetime.now(tz=timezone.utc).strftime(_ISO)


class _JSONFormatter(logging.Formatter):
    def format(self, record):  # type: ignore[override]
        if isinstance(record.msg, dict):
            return json.dumps(record.msg, separators=(",", ":"))
        return json.dumps(
            {"event": "message", "ts": _now(), "level": record.levelname, "msg": record.getMessage()},
            separators=(",", ":"),
        )


class AuditLogger:
    def __init__(self, basename: str | Path, name: str = "access.audit"):
        log = logging.getLogger(name)
        log.setLevel(logging.INFO)
        log.propagate = False  # keep the audit stream out of the diagnostic log

        for old in list(log.handlers):
            log.removeHandler(old)
            old.close()

        basename = Path(basename).with_suffix("")  # access_audit
        self.path = basename.with_name(basename.name + ".jsonl")
        self.path.parent.mkdir(parents=True, exist_ok=True)

        h = logging.handlers.TimedRotatingFileHandler(
            self.path, when="midnight", backupCount=7, encoding="utf-8"
        )
        h.setFormatter(_JSONFormatter())
        log.addHandler(h)

        self.log = log

    def access(self, environment_id: int, user_id: int, granted: bool, reason: str):
        self.log.info(
            {
                "event": "access",
                "ts": _now(),
                "environment": environment_id,
                "user": user_id,
                "granted": granted,
                "reason": reason,
            }
        )

    def change(self, event: str, **fields: Any):
        record = {"event": event, "ts": _now()}
        record.update(fields)
        self.log.info(record)

    def load_failed(self, directory: str | Path, error: BaseException):
        self.log.error(
            {"event": "load_failed", "ts": _now(), "dir": str(directory), "error": str(error)}
        )

    def save_failed(self, directory: str | Path, error: BaseException):
        self.log.error(
            {"event": "save_failed", "ts": _now(), "dir": str(directory), "error": str(error)}
        )

    def close(self) -> None:
        for h in list(self.log.handlers):
            self.log.removeHandler(h)
            h.close()
