"""
kudos.engine.events — Recognition
==================================

The award envelope produced by the parser and consumed by the ledger.
Recognitions are ephemeral: only their effect on user records is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

__all__ = ["Recognition"]


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class Recognition:
    """One (giver, receiver, reason, value, points) award."""

    giver: str
    receiver: str
    reason: str
    value: str
    points: int
    timestamp: datetime = field(default_factory=_utc_now)
