"""
kudos.database.models — SQLAlchemy 2.0 Data Models
===================================================

Tables:
- ledger_snapshots — one whole-state ledger snapshot per store key

The ledger is persisted as a single JSON document rather than normalized
rows; every mutation replaces the document.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Kudos ORM models."""


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
SnapshotJSON = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# ledger_snapshots
# ---------------------------------------------------------------------------
class LedgerSnapshot(Base):
    """Latest ``{"config": ..., "users": ...}`` document for one ledger."""

    __tablename__ = "ledger_snapshots"

    store_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[dict] = mapped_column(SnapshotJSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<LedgerSnapshot key={self.store_key}>"
