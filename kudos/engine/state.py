"""
kudos.engine.state — Ledger State Types
========================================

Plain dataclasses for everything the ledger persists: the value taxonomy
(:class:`LedgerConfig`), the reward catalog (:class:`Reward`), per-user
aggregates (:class:`UserRecord`), and the whole-state snapshot
(:class:`AppState`).

Serialization uses the camelCase snapshot layout::

    {"config": {"dailyLimit": 5, "values": [...], "rewards": [...], "label": "points"},
     "users":  {"U123": {"total": 3, "byValue": {...}, "dailyGiven": 0, "lastReset": "2026-01-15"}}}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kudos.constants import (
    DEFAULT_DAILY_LIMIT,
    DEFAULT_LABEL,
    DEFAULT_REWARDS,
    DEFAULT_VALUE,
    DEFAULT_VALUES,
    normalize_value,
)

__all__ = ["AppState", "LedgerConfig", "Reward", "UserRecord", "default_state"]


# ---------------------------------------------------------------------------
# Config store
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class Reward:
    """A redeemable catalog item.  ``name`` is the unique key."""

    name: str
    cost: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "cost": self.cost}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Reward:
        return cls(name=str(raw["name"]), cost=int(raw["cost"]))


@dataclass(slots=True)
class LedgerConfig:
    """Mutable gameplay taxonomy: daily limit, value tags, rewards, label.

    ``values`` holds canonical lower-case tags without duplicates and never
    includes the implicit ``"general"`` tag.
    """

    daily_limit: int = DEFAULT_DAILY_LIMIT
    values: list[str] = field(default_factory=lambda: list(DEFAULT_VALUES))
    rewards: list[Reward] = field(
        default_factory=lambda: [Reward(n, c) for n, c in DEFAULT_REWARDS]
    )
    label: str = DEFAULT_LABEL

    def is_valid_value(self, tag: str) -> bool:
        """True if *tag* (already normalized) may be awarded against."""
        return tag == DEFAULT_VALUE or tag in self.values

    def find_reward(self, name: str) -> Reward | None:
        for reward in self.rewards:
            if reward.name == name:
                return reward
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "dailyLimit": self.daily_limit,
            "values": list(self.values),
            "rewards": [r.to_dict() for r in self.rewards],
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> LedgerConfig:
        values: list[str] = []
        for v in raw.get("values", DEFAULT_VALUES):
            tag = normalize_value(str(v))
            if tag and tag not in values:
                values.append(tag)
        return cls(
            daily_limit=int(raw.get("dailyLimit", DEFAULT_DAILY_LIMIT)),
            values=values,
            rewards=[Reward.from_dict(r) for r in raw.get("rewards", [])],
            label=str(raw.get("label", DEFAULT_LABEL)),
        )


# ---------------------------------------------------------------------------
# Per-user aggregate
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class UserRecord:
    """Points received (total and per value) plus today's giving counter."""

    last_reset: str
    total: int = 0
    by_value: dict[str, int] = field(default_factory=dict)
    daily_given: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "byValue": dict(self.by_value),
            "dailyGiven": self.daily_given,
            "lastReset": self.last_reset,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> UserRecord:
        return cls(
            last_reset=str(raw.get("lastReset", "")),
            total=int(raw.get("total", 0)),
            by_value={str(k): int(v) for k, v in raw.get("byValue", {}).items()},
            daily_given=int(raw.get("dailyGiven", 0)),
        )


# ---------------------------------------------------------------------------
# Whole-state snapshot
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class AppState:
    """The sole unit of persistence: one config plus every user record."""

    config: LedgerConfig = field(default_factory=LedgerConfig)
    users: dict[str, UserRecord] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "users": {uid: rec.to_dict() for uid, rec in self.users.items()},
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> AppState:
        return cls(
            config=LedgerConfig.from_dict(raw.get("config", {})),
            users={
                str(uid): UserRecord.from_dict(rec)
                for uid, rec in raw.get("users", {}).items()
            },
        )


def default_state() -> AppState:
    """Fresh state used when the store holds no snapshot."""
    return AppState()
