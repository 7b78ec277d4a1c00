"""Tests for the access decision procedure."""

from datetime import datetime

from access.decision import record_access


class TestAccessDecisionMatrix:
    def test_known_user_without_grant_is_denied_and_logged(self, lab):
        assert lab.record_access(1, 1) is False
        logs = lab.find_environment(1).logs.snapshot()
        assert len(logs) == 1
        assert (logs[0].user_id, logs[0].granted) == (1, False)

    def test_granted_user_is_allowed_and_logged(self, lab):
        lab.grant_permission(1, 1)
        assert lab.record_access(1, 1) is True
        entry = lab.find_environment(1).logs.snapshot()[-1]
        assert (entry.user_id, entry.granted) == (1, True)

    def test_unknown_environment_leaves_no_trace(self, lab):
        assert lab.record_access(99, 1) is False
        assert all(len(env.logs) == 0 for env in lab.environments)

    def test_unknown_user_is_denied_and_tagged(self, lab):
        assert lab.record_access(1, 99) is False
        entry = lab.find_environment(1).logs.snapshot()[-1]
        assert (entry.user_id, entry.granted) == (99, False)

    def test_revoked_user_is_denied_again(self, lab):
        lab.grant_permission(1, 1)
        lab.revoke_permission(1, 1)
        assert lab.record_access(1, 1) is False


class TestRecordAccess:
    def test_timestamp_comes_from_clock(self, lab, clock):
        expected = clock.now
        lab.record_access(1, 1)
        assert lab.find_environment(1).logs.snapshot()[0].timestamp == expected

    def test_timestamp_is_truncated_to_seconds(self, lab):
        stamp = datetime(2025, 6, 19, 15, 7, 2, 987654)
        record_access(lab, 1, 1, clock=lambda: stamp)
        logged = lab.find_environment(1).logs.snapshot()[0].timestamp
        assert logged == datetime(2025, 6, 19, 15, 7, 2)

    def test_log_stays_bounded(self, lab):
        for _ in range(150):
            lab.record_access(1, 1)
        assert len(lab.find_environment(1).logs) == 100

    def test_reasons_reported_to_audit(self, lab):
        seen = []

        class Recorder:
            def access(self, environment_id, user_id, granted, reason):
                seen.append(reason)

        audit = Recorder()
        record_access(lab, 99, 1, audit=audit)
        record_access(lab, 1, 99, audit=audit)
        record_access(lab, 1, 1, audit=audit)
        lab.grant_permission(1, 1)
        record_access(lab, 1, 1, audit=audit)
        assert seen == ["unknown_environment", "unknown_user", "not_permitted", "permitted"]
