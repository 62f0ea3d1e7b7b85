"""
kudos.constants — Shared Constants & Helpers
=============================================

Single source of truth for default taxonomy values and the "today" helper
that drives the daily giving window.  Import from here instead of
duplicating literals in the parser, ledger, and admin service.
"""

from __future__ import annotations

from datetime import UTC, datetime

# ---------------------------------------------------------------------------
# Value taxonomy
# ---------------------------------------------------------------------------
DEFAULT_VALUE = "general"  # Always valid, never stored in config.values

DEFAULT_VALUES: tuple[str, ...] = ("integrity", "innovation", "teamwork")

# ---------------------------------------------------------------------------
# Ledger defaults (used when no snapshot exists yet)
# ---------------------------------------------------------------------------
DEFAULT_DAILY_LIMIT = 5
DEFAULT_LABEL = "points"
DEFAULT_REWARDS: tuple[tuple[str, int], ...] = (
    ("Coffee Voucher", 50),
    ("Half-day Off", 100),
)

# Seconds to wait for an external group-membership lookup
DEFAULT_GROUP_LOOKUP_TIMEOUT = 5.0


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------
def utc_today() -> str:
    """Today's UTC date as ``YYYY-MM-DD`` — the daily window key."""
    return datetime.now(UTC).date().isoformat()


def normalize_value(value: str) -> str:
    """Canonical form of a value tag: trimmed and lower-cased."""
    return value.strip().lower()
