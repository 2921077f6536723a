# tests/conftest.py

import pytest

from daybook import timezone_utils
from daybook.repository import Planner
from daybook.storage import MemoryStorage
from daybook.store import DataStores

from .fakes import FixedClock


@pytest.fixture(autouse=True)
def utc_timezone():
    """Run every test with UTC as the local timezone."""
    previous = timezone_utils.get_timezone_name()
    timezone_utils.set_timezone("UTC")
    yield
    timezone_utils.set_timezone(previous)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def stores(storage, clock) -> DataStores:
    return DataStores(storage, clock)


@pytest.fixture
def planner(storage, clock) -> Planner:
    p = Planner(storage, clock)
    p.load()
    return p
