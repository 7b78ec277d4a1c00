"""Shared fixtures for the access registry tests."""

from datetime import datetime, timedelta

import pytest

from access.registry import Registry


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start=datetime(2025, 6, 19, 15, 7, 2)):
        self.now = start

    def __call__(self):
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(tmp_path, clock):
    return Registry(tmp_path, clock=clock)


@pytest.fixture
def lab(registry):
    """Registry with environment {1, Lab} and user {1, Ana}, no grants."""
    registry.add_environment(1, "Lab")
    registry.add_user(1, "Ana")
    return registry
