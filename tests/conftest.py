"""Shared test fixtures for the GTD test suite."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure the project root is importable when pytest runs without an install
sys.path.insert(0, str(Path(__file__).parent.parent))

from pkg.gtd.storage import MemoryStorage
from pkg.gtd.store import TaskStore


class TickingClock:
    """Fixed start time, one second later on every call."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage, clock):
    return TaskStore(storage, clock=clock)
