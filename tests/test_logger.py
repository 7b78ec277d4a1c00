"""Tests for the JSON-lines audit logger."""

import json

from access.logger import AuditLogger
from access.registry import Registry


def _records(path):
    return [json.loads(ln) for ln in path.read_text(encoding="utf-8").splitlines()]


class TestAuditLogger:
    def test_writes_jsonl_next_to_basename(self, tmp_path):
        audit = AuditLogger(tmp_path / "audit.log")
        try:
            audit.access(1, 2, False, "not_permitted")
        finally:
            audit.close()
        assert audit.path == tmp_path / "audit.jsonl"
        [record] = _records(audit.path)
        assert record["event"] == "access"
        assert record["environment"] == 1
        assert record["user"] == 2
        assert record["granted"] is False
        assert record["reason"] == "not_permitted"
        assert record["ts"].endswith("Z")

    def test_registry_events(self, tmp_path):
        audit = AuditLogger(tmp_path / "logs" / "audit.log")
        registry = Registry(tmp_path / "data", audit=audit)
        try:
            registry.add_environment(1, "Lab")
            registry.add_user(1, "Ana")
            registry.grant_permission(1, 1)
            registry.record_access(1, 1)
            registry.save_all()
        finally:
            audit.close()
        events = [r["event"] for r in _records(audit.path)]
        assert events == ["environment_added", "user_added", "permission_granted", "access", "saved"]

    def test_reopening_does_not_duplicate_lines(self, tmp_path):
        first = AuditLogger(tmp_path / "a.log")
        second = AuditLogger(tmp_path / "b.log")
        try:
            second.change("user_added", user=1)
        finally:
            second.close()
            first.close()
        assert len(_records(second.path)) == 1
        assert not first.path.exists() or _records(first.path) == []

    def test_only_last_suffix_is_replaced(self, tmp_path):
        audit = AuditLogger(tmp_path / "audit.v2.log")
        audit.close()
        assert audit.path == tmp_path / "audit.v2.jsonl"
