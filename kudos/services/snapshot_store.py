"""
kudos.services.snapshot_store — Whole-State Snapshot Backends
==============================================================

The ledger persists one JSON-compatible document per store.  Backends only
move that document; they know nothing about its contents.

* :class:`JsonFileStore` — local JSON file, replaced atomically; unreadable
  files are moved aside rather than overwritten.
* :class:`SqlSnapshotStore` — one row in ``ledger_snapshots`` (SQLAlchemy).
* :class:`InMemoryStore` — process-local, for tests and dry runs.

``save`` raises on failure (``OSError`` / ``SQLAlchemyError``); the ledger
wraps that into :class:`PersistenceError`.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy.orm import Session

from kudos.database.engine import get_session
from kudos.database.models import LedgerSnapshot

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

__all__ = [
    "InMemoryStore",
    "JsonFileStore",
    "PersistenceError",
    "SnapshotStore",
    "SqlSnapshotStore",
]


class PersistenceError(RuntimeError):
    """The ledger snapshot could not be written durably."""


class SnapshotStore(Protocol):
    """Snapshot backend interface."""

    def load(self) -> dict[str, Any] | None:
        ...

    def save(self, payload: dict[str, Any]) -> None:
        ...


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------
class InMemoryStore:
    """Keeps a private copy of the last saved payload."""

    def __init__(self, payload: dict[str, Any] | None = None) -> None:
        self._payload = copy.deepcopy(payload)
        self.save_count = 0

    def load(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._payload)

    def save(self, payload: dict[str, Any]) -> None:
        self._payload = copy.deepcopy(payload)
        self.save_count += 1


# ---------------------------------------------------------------------------
# JSON file
# ---------------------------------------------------------------------------
class JsonFileStore:
    """Snapshot in a JSON file.

    Writes go to a temporary file in the same directory which is fsynced and
    then renamed over the target, so readers never see a half-written file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any] | None:
        """Parsed snapshot, or ``None`` when there is nothing usable.

        An unparseable file (or one that is not a JSON object) is renamed to
        ``<name>.corrupt-<timestamp>`` before starting fresh, so the next save
        cannot overwrite it.  I/O errors propagate.
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except ValueError:
            backup = self._set_aside()
            logger.exception(
                "Ledger snapshot %s is not valid JSON; moved to %s, starting fresh",
                self.path,
                backup,
            )
            return None
        if not isinstance(data, dict):
            backup = self._set_aside()
            logger.error(
                "Ledger snapshot %s is not a JSON object; moved to %s, starting fresh",
                self.path,
                backup,
            )
            return None
        return data

    def _set_aside(self) -> Path:
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%fZ")
        backup = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        os.replace(self.path, backup)
        return backup

    def save(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------
class SqlSnapshotStore:
    """Snapshot in the ``ledger_snapshots`` table, keyed by *store_key*."""

    def __init__(self, engine: Engine, store_key: str = "default") -> None:
        self._engine = engine
        self.store_key = store_key

    def load(self) -> dict[str, Any] | None:
        with Session(self._engine) as session:
            row = session.get(LedgerSnapshot, self.store_key)
            if row is None:
                return None
            return copy.deepcopy(row.payload)

    def save(self, payload: dict[str, Any]) -> None:
        with get_session(self._engine) as session:
            row = session.get(LedgerSnapshot, self.store_key)
            if row is None:
                session.add(LedgerSnapshot(store_key=self.store_key, payload=payload))
            else:
                row.payload = payload
