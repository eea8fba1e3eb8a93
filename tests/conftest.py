"""
Shared pytest fixtures for store tests.
"""

import tempfile

import pytest
import pytest_asyncio

from auxdata import AsyncStore, Store


class FakeClock:
    """Controllable epoch-seconds clock for expiry tests."""

    def __init__(self, now: float = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 1) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def clock():
    """Provide a clock that only moves when told to."""
    return FakeClock()


@pytest.fixture
def store(temp_dir, clock):
    """Provide an open Store driven by the fake clock."""
    with Store(temp_dir, clock=clock) as s:
        yield s


@pytest_asyncio.fixture
async def async_store(temp_dir, clock):
    """Provide an open AsyncStore driven by the fake clock."""
    async with AsyncStore(temp_dir, clock=clock) as s:
        yield s


@pytest.fixture
def sample_values():
    """Provide values covering every supported JSON shape."""
    return {
        "none": None,
        "true": True,
        "false": False,
        "int": 42,
        "negative": -7,
        "float": 3.5,
        "string": "hello",
        "unicode": "中文 日本語",
        "list": [1, "two", [3.0, None]],
        "dict": {"a": 1, "nested": {"b": [True, False]}},
        "empty_list": [],
        "empty_dict": {},
    }
