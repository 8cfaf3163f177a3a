"""
Shared fixtures for the Stargazer tests.
"""

from datetime import datetime, timedelta, timezone

import pytest


class FakeClock:
    """Simulated time: sleeping advances both the monotonic and the wall clock."""

    def __init__(self, start: datetime):
        self.start = start
        self.elapsed = 0.0
        self.sleeps = []

    def monotonic(self) -> float:
        return self.elapsed

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self.elapsed)

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.elapsed += seconds


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))
