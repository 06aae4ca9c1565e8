"""
Pytest configuration and fixtures for the diagnostic server tests.
Provides a controllable clock and app/client factories.
"""

import pytest
from fastapi.testclient import TestClient

from app import create_app
from health import StartInstant


class FakeClock:
    """Monotonic clock stand-in that only moves when told to"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app(clock):
    """App whose start instant sits at the fake clock's current reading"""
    return create_app(started=StartInstant.now(clock), clock=clock, fail_after=10.0)


@pytest.fixture
def client(app):
    return TestClient(app)
