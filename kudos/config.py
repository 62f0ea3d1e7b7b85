"""
kudos.config — YAML Configuration Loader
=========================================

**Why this file exists:**
This module reads ``config.yaml`` for **infrastructure-only** settings
(where the ledger lives, who the admins are, static groups, lookup
timeouts).  Gameplay tuning (daily limit, value tags, rewards, label) lives
in the persisted ledger snapshot and is edited through the admin commands.

Environment variables override the file (handy with ``.env``):

* ``DATA_FILE_PATH`` — JSON snapshot path
* ``ADMIN_USERS`` — comma-separated admin user ids
* ``DATABASE_URL`` — store the snapshot in SQL instead of a JSON file

Usage::

    from kudos.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.data_file)         # data/store.json
    print(cfg.admin_users)       # ("U012ADMIN",)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from kudos.constants import DEFAULT_GROUP_LOOKUP_TIMEOUT


# ---------------------------------------------------------------------------
# Typed settings object, infrastructure only.
# Gameplay tuning lives in the ledger snapshot.
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class KudosConfig:
    """Immutable configuration loaded from ``config.yaml`` + environment."""

    # Identity
    community_name: str

    # Storage
    data_file: Path
    database_url: str | None = None  # When set, the snapshot lives in SQL

    # Admin
    admin_users: tuple[str, ...] = ()

    # Groups
    group_lookup_timeout: float = DEFAULT_GROUP_LOOKUP_TIMEOUT
    groups: dict[str, tuple[str, ...]] = field(default_factory=dict)


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> KudosConfig:
    """Read *path* and return a :class:`KudosConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    data_file = os.getenv("DATA_FILE_PATH") or raw.get("data_file", "data/store.json")

    admin_env = os.getenv("ADMIN_USERS")
    if admin_env is not None:
        admin_users = _split_csv(admin_env)
    else:
        admin_users = tuple(str(u) for u in raw.get("admin_users") or ())

    groups = {
        str(group_id): tuple(str(m) for m in members or ())
        for group_id, members in (raw.get("groups") or {}).items()
    }

    return KudosConfig(
        community_name=raw.get("community_name", "Kudos"),
        data_file=Path(data_file),
        database_url=os.getenv("DATABASE_URL") or raw.get("database_url") or None,
        admin_users=admin_users,
        group_lookup_timeout=float(
            raw.get("group_lookup_timeout", DEFAULT_GROUP_LOOKUP_TIMEOUT)
        ),
        groups=groups,
    )
