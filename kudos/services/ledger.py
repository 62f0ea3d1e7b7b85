"""
kudos.services.ledger — Points Ledger
======================================

Authoritative store of the value taxonomy and every user's point
aggregates.  The ledger is the **only** writer of :class:`AppState`; every
read returns a copy so callers cannot mutate ledger state behind its back.

Every mutation follows the same pattern:
  1. Take the lock
  2. Deep-copy the current state into a draft
  3. Apply the change to the draft
  4. Write the draft through the snapshot store
  5. Swap the draft in as the current state

If step 4 fails, :class:`PersistenceError` propagates and the in-memory
state still equals the last durable snapshot.

Daily window: a user's ``daily_given`` belongs to the date in
``last_reset``.  Reads never roll the window over; only
:meth:`PointsLedger.record_recognition` does, for the giver.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable

from kudos.constants import DEFAULT_VALUE, DEFAULT_VALUES, normalize_value, utc_today
from kudos.engine.events import Recognition
from kudos.engine.state import AppState, LedgerConfig, Reward, UserRecord, default_state
from kudos.services.snapshot_store import PersistenceError, SnapshotStore

logger = logging.getLogger(__name__)

__all__ = ["PersistenceError", "PointsLedger"]


class PointsLedger:
    """Persisted, limit-enforcing per-user points store.

    Parameters
    ----------
    store:
        Snapshot backend; loaded once on construction.
    today:
        Returns the current ``YYYY-MM-DD`` date.  Injectable for tests.
    """

    def __init__(
        self,
        store: SnapshotStore,
        *,
        today: Callable[[], str] = utc_today,
    ) -> None:
        self._store = store
        self._today = today
        self._lock = threading.RLock()

        raw = store.load()
        self._state = AppState.from_dict(raw) if raw is not None else default_state()
        logger.info(
            "Ledger loaded: %d users, %d values, %d rewards, daily limit %d",
            len(self._state.users),
            len(self._state.config.values),
            len(self._state.config.rewards),
            self._state.config.daily_limit,
        )

    @property
    def lock(self) -> threading.RLock:
        """Re-entrant lock; hold it across check-then-record sequences."""
        return self._lock

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _draft(self) -> AppState:
        return copy.deepcopy(self._state)

    def _commit(self, draft: AppState, action: str) -> None:
        """Persist *draft*, then make it the current state."""
        try:
            self._store.save(draft.to_dict())
        except Exception as exc:
            logger.exception("Failed to persist ledger snapshot (%s)", action)
            raise PersistenceError(f"Failed to save ledger state during {action}") from exc
        self._state = draft

    def _blank_record(self) -> UserRecord:
        return UserRecord(last_reset=self._today())

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_config(self) -> LedgerConfig:
        with self._lock:
            return copy.deepcopy(self._state.config)

    def get_rewards(self) -> list[Reward]:
        with self._lock:
            return copy.deepcopy(self._state.config.rewards)

    def get_reward(self, name: str) -> Reward | None:
        with self._lock:
            return copy.deepcopy(self._state.config.find_reward(name))

    def get_user_record(self, user_id: str) -> UserRecord:
        """Copy of *user_id*'s record.

        Unknown users are materialized in memory with a blank record.  That
        creation is not persisted until the next mutation saves the state.
        """
        with self._lock:
            record = self._state.users.get(user_id)
            if record is None:
                record = self._blank_record()
                self._state.users[user_id] = record
            return copy.deepcopy(record)

    def get_all_users(self) -> dict[str, UserRecord]:
        with self._lock:
            return copy.deepcopy(self._state.users)

    def top_users(self, limit: int = 10) -> list[tuple[str, UserRecord]]:
        """Leaderboard: ``(user_id, record)`` by total descending, then id."""
        with self._lock:
            ranked = sorted(
                self._state.users.items(), key=lambda item: (-item[1].total, item[0])
            )
            return copy.deepcopy(ranked[:limit])

    def can_give_points(self, giver_id: str, points: int) -> bool:
        """Whether *giver_id* may award *points* more today.

        A stale window (``last_reset`` is not today) always allows; the
        counter itself is only reset by :meth:`record_recognition`.
        """
        with self._lock:
            record = self.get_user_record(giver_id)
            if record.last_reset != self._today():
                return True
            return record.daily_given + points <= self._state.config.daily_limit

    # -------------------------------------------------------------------
    # Point mutations
    # -------------------------------------------------------------------
    def record_recognition(self, recognition: Recognition) -> None:
        """Apply one recognition to the giver and receiver, then persist."""
        with self._lock:
            draft = self._draft()
            today = self._today()

            giver = draft.users.setdefault(recognition.giver, UserRecord(last_reset=today))
            if giver.last_reset != today:
                giver.daily_given = 0
                giver.last_reset = today
            giver.daily_given += recognition.points

            receiver = draft.users.setdefault(
                recognition.receiver, UserRecord(last_reset=today)
            )
            receiver.total += recognition.points
            receiver.by_value[recognition.value] = (
                receiver.by_value.get(recognition.value, 0) + recognition.points
            )

            self._commit(draft, "record_recognition")

        logger.info(
            "Recognition recorded: %s → %s +%d (%s)",
            recognition.giver,
            recognition.receiver,
            recognition.points,
            recognition.value,
        )

    def reset_user_points(self, user_id: str) -> None:
        """Zero *user_id*'s totals and giving window."""
        with self._lock:
            draft = self._draft()
            draft.users[user_id] = self._blank_record()
            self._commit(draft, "reset_user_points")
        logger.info("Points reset for %s", user_id)

    def redeem_reward(self, user_id: str, reward_name: str) -> bool:
        """Deduct a reward's cost from *user_id*'s total.

        Returns ``False`` without any mutation when the reward is unknown or
        the balance is insufficient.
        """
        with self._lock:
            reward = self._state.config.find_reward(reward_name)
            if reward is None:
                return False
            if self.get_user_record(user_id).total < reward.cost:
                return False

            draft = self._draft()
            draft.users[user_id].total -= reward.cost
            self._commit(draft, "redeem_reward")

        logger.info("%s redeemed %r for %d", user_id, reward_name, reward.cost)
        return True

    # -------------------------------------------------------------------
    # Config mutations
    # -------------------------------------------------------------------
    def set_daily_limit(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"Daily limit must be positive, got {limit}")
        with self._lock:
            draft = self._draft()
            draft.config.daily_limit = limit
            self._commit(draft, "set_daily_limit")
        logger.info("Daily limit set to %d", limit)

    def set_label(self, label: str) -> None:
        label = label.strip()
        if not label:
            raise ValueError("Label must not be empty")
        with self._lock:
            draft = self._draft()
            draft.config.label = label
            self._commit(draft, "set_label")

    def add_value(self, value: str) -> None:
        """Add a value tag.  Known tags (and ``general``) are a no-op."""
        tag = normalize_value(value)
        if not tag:
            raise ValueError("Value must not be empty")
        with self._lock:
            if tag == DEFAULT_VALUE or tag in self._state.config.values:
                return
            draft = self._draft()
            draft.config.values.append(tag)
            self._commit(draft, "add_value")
        logger.info("Value added: %s", tag)

    def remove_value(self, value: str) -> None:
        tag = normalize_value(value)
        with self._lock:
            draft = self._draft()
            draft.config.values = [v for v in draft.config.values if v != tag]
            self._commit(draft, "remove_value")
        logger.info("Value removed: %s", tag)

    def reset_values(self) -> None:
        """Restore the default value tags."""
        with self._lock:
            draft = self._draft()
            draft.config.values = list(DEFAULT_VALUES)
            self._commit(draft, "reset_values")

    def add_reward(self, name: str, cost: int) -> None:
        """Add a reward, or update the cost of an existing one."""
        if not name.strip():
            raise ValueError("Reward name must not be empty")
        if cost < 1:
            raise ValueError(f"Reward cost must be positive, got {cost}")
        with self._lock:
            draft = self._draft()
            existing = draft.config.find_reward(name)
            if existing is not None:
                existing.cost = cost
            else:
                draft.config.rewards.append(Reward(name=name, cost=cost))
            self._commit(draft, "add_reward")
        logger.info("Reward %r set to cost %d", name, cost)

    def remove_reward(self, name: str) -> None:
        with self._lock:
            draft = self._draft()
            draft.config.rewards = [r for r in draft.config.rewards if r.name != name]
            self._commit(draft, "remove_reward")
        logger.info("Reward removed: %r", name)

    def reset_rewards(self) -> None:
        """Empty the reward catalog."""
        with self._lock:
            draft = self._draft()
            draft.config.rewards = []
            self._commit(draft, "reset_rewards")
