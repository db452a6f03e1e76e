# tests/conftest.py
"""Minimal shared fixtures for test suite."""

import itertools

import pytest

from marketplace.directory import MarketplaceDirectory


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ticker():
    """Strictly increasing bid timestamps."""
    counter = itertools.count(1)
    return lambda: float(next(counter))


@pytest.fixture
def directory(clock, ticker):
    return MarketplaceDirectory(clock=clock, ticker=ticker)


@pytest.fixture
def seller(directory):
    directory.register_user("seller", "seller@example.com")
    return directory.login("seller").value


@pytest.fixture
def alice(directory):
    directory.register_user("alice", "alice@example.com")
    return directory.login("alice").value


@pytest.fixture
def bob(directory):
    directory.register_user("bob", "bob@example.com")
    return directory.login("bob").value
