"""
kudos.services.admin_service — Admin & Redemption Command Layer
================================================================

Command-level wrappers around :class:`~kudos.services.ledger.PointsLedger`
for the chat transport's ``/points`` and ``/redeem`` handlers.  Every
command:
  1. Checks the caller is an admin (except redemption)
  2. Validates and normalizes the raw string arguments
  3. Applies the ledger mutation
  4. Logs the action with the actor id
  5. Returns a :class:`CommandResult` — bad input never raises

Persistence failures are not caught here; they propagate to the transport.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from kudos.constants import normalize_value
from kudos.engine.tokenizer import TokenKind, tokenize
from kudos.services.ledger import PointsLedger

logger = logging.getLogger(__name__)

# Slack member ids (U…/W…) or Discord snowflakes
_RAW_USER_ID_RE = re.compile(r"[UW][A-Z0-9]+|[0-9]+")


@dataclass(slots=True)
class CommandResult:
    """Outcome of one command, ready to show the caller."""

    success: bool
    message: str
    data: Any = None


def _parse_positive_int(raw: str | None) -> int | None:
    try:
        number = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return number if number >= 1 else None


def resolve_user_target(target: str) -> str | None:
    """User id from a mention (``<@U123>``) or a bare id; else ``None``."""
    target = (target or "").strip()
    tokens = list(tokenize(target))
    if len(tokens) == 1 and tokens[0].kind is TokenKind.USER:
        return tokens[0].value
    if _RAW_USER_ID_RE.fullmatch(target):
        return target
    return None


class AdminService:
    """Admin-gated configuration commands plus reward redemption."""

    def __init__(self, ledger: PointsLedger, admin_users: Iterable[str] = ()) -> None:
        self.ledger = ledger
        self.admin_users = frozenset(u.strip() for u in admin_users if u.strip())

    def is_admin(self, user_id: str) -> bool:
        return user_id in self.admin_users

    def _denied(self, user_id: str, what: str) -> CommandResult:
        logger.warning("Non-admin %s attempted to %s", user_id, what)
        return CommandResult(False, f"Only admins can {what}")

    # -------------------------------------------------------------------
    # Config commands
    # -------------------------------------------------------------------
    def set_daily_limit(self, user_id: str, limit_str: str) -> CommandResult:
        if not self.is_admin(user_id):
            return self._denied(user_id, "change the daily limit")
        limit = _parse_positive_int(limit_str)
        if limit is None:
            return CommandResult(False, "Please provide a valid number for the daily limit")

        self.ledger.set_daily_limit(limit)
        logger.info("Admin %s set daily limit to %d", user_id, limit)
        label = self.ledger.get_config().label
        return CommandResult(True, f"Daily limit set to {limit} {label}")

    def add_value(self, user_id: str, value: str) -> CommandResult:
        if not self.is_admin(user_id):
            return self._denied(user_id, "add company values")
        tag = normalize_value(value or "")
        if not tag:
            return CommandResult(False, "Please provide a valid value name")

        self.ledger.add_value(tag)
        logger.info("Admin %s added value %s", user_id, tag)
        return CommandResult(True, f'Added "{tag}" to company values')

    def remove_value(self, user_id: str, value: str) -> CommandResult:
        if not self.is_admin(user_id):
            return self._denied(user_id, "remove company values")
        tag = normalize_value(value or "")
        if not tag:
            return CommandResult(False, "Please provide a valid value name")

        self.ledger.remove_value(tag)
        logger.info("Admin %s removed value %s", user_id, tag)
        return CommandResult(True, f'Removed "{tag}" from company values')

    def add_reward(self, user_id: str, name: str, cost_str: str) -> CommandResult:
        if not self.is_admin(user_id):
            return self._denied(user_id, "add rewards")
        name = (name or "").strip()
        if not name:
            return CommandResult(False, "Please provide a valid reward name")
        cost = _parse_positive_int(cost_str)
        if cost is None:
            return CommandResult(False, "Please provide a valid cost for the reward")

        self.ledger.add_reward(name, cost)
        logger.info("Admin %s set reward %r to %d", user_id, name, cost)
        label = self.ledger.get_config().label
        return CommandResult(True, f'Added reward "{name}" with cost {cost} {label}')

    def remove_reward(self, user_id: str, name: str) -> CommandResult:
        if not self.is_admin(user_id):
            return self._denied(user_id, "remove rewards")
        name = (name or "").strip()
        if not name:
            return CommandResult(False, "Please provide a valid reward name")

        self.ledger.remove_reward(name)
        logger.info("Admin %s removed reward %r", user_id, name)
        return CommandResult(True, f'Removed reward "{name}"')

    # -------------------------------------------------------------------
    # Point resets
    # -------------------------------------------------------------------
    def reset_points(self, requester_id: str, target: str) -> CommandResult:
        if not self.is_admin(requester_id):
            return self._denied(requester_id, "reset points")
        user_id = resolve_user_target(target)
        if user_id is None:
            logger.warning("Invalid user identifier provided: %s", target)
            return CommandResult(False, f"Invalid user identifier: {target}")

        self.ledger.reset_user_points(user_id)
        logger.info("Admin %s reset points for %s", requester_id, user_id)
        return CommandResult(True, f"Points for {target} have been reset.")

    def reset_all_points(self, requester_id: str) -> CommandResult:
        """Reset every known user — one snapshot write per user."""
        if not self.is_admin(requester_id):
            return self._denied(requester_id, "reset all points")

        user_ids = list(self.ledger.get_all_users())
        for user_id in user_ids:
            self.ledger.reset_user_points(user_id)
        logger.info("Admin %s reset points for %d users", requester_id, len(user_ids))
        return CommandResult(True, "All user points have been reset.", {"count": len(user_ids)})

    # -------------------------------------------------------------------
    # Redemption (any user)
    # -------------------------------------------------------------------
    def redeem_reward(self, user_id: str, reward_name: str) -> CommandResult:
        reward_name = (reward_name or "").strip()
        reward = self.ledger.get_reward(reward_name)
        if reward is None:
            return CommandResult(False, f'Reward "{reward_name}" not found')

        label = self.ledger.get_config().label
        user = self.ledger.get_user_record(user_id)
        if user.total < reward.cost:
            return CommandResult(
                False,
                f"You don't have enough {label}. This reward costs {reward.cost} "
                f"{label}, but you only have {user.total}.",
            )

        if not self.ledger.redeem_reward(user_id, reward_name):
            return CommandResult(False, "Failed to redeem reward. Please try again.")

        balance = self.ledger.get_user_record(user_id).total
        return CommandResult(
            True,
            f'You\'ve redeemed "{reward.name}" for {reward.cost} {label}! '
            f"Your new balance is {balance} {label}.",
            {"reward": reward, "user": user},
        )
