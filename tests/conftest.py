"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from kudos.database.models import Base
from kudos.engine.state import LedgerConfig
from kudos.services.ledger import PointsLedger
from kudos.services.snapshot_store import InMemoryStore

TODAY = "2026-01-15"
YESTERDAY = "2026-01-14"


def run_async(coro):
    """Run an async coroutine in a new event loop (no pytest-asyncio needed)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeClock:
    """Mutable ``today()`` for daily-window tests."""

    def __init__(self, day: str = TODAY) -> None:
        self.day = day

    def __call__(self) -> str:
        return self.day


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Kudos tables.

    Uses StaticPool so worker threads (``asyncio.to_thread``) share the same
    in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def ledger(store, clock) -> PointsLedger:
    """A fresh ledger with default config, pinned to ``TODAY``."""
    return PointsLedger(store, today=clock)


@pytest.fixture
def config() -> LedgerConfig:
    """Parser config: three value tags, default limit."""
    return LedgerConfig(values=["integrity", "innovation", "teamwork"])
