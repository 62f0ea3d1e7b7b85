"""
Kudos — Peer Recognition & Points Ledger
=========================================
Recognizes team members in free-form chat text (``<@U123> ++ great demo
#teamwork``), turns each recognition into points against a shared value
taxonomy, and keeps a persisted, daily-limit-enforced ledger per user.

Package layout::

    kudos/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Defaults + date helpers
    ├── bootstrap.py       # Store/ledger/service wiring, logging
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ledger_snapshots table
    ├── engine/
    │   ├── events.py      # Recognition dataclass
    │   ├── state.py       # LedgerConfig, Reward, UserRecord, AppState
    │   ├── tokenizer.py   # Mention / group / + / #tag tokens
    │   ├── parser.py      # Recognition units → Recognition candidates
    │   └── resolvers.py   # Group membership adapters (static, Discord roles)
    └── services/
        ├── snapshot_store.py     # JSON file / SQL / in-memory backends
        ├── ledger.py             # PointsLedger, the only state writer
        ├── recognition_service.py  # Parser → limit check → ledger
        └── admin_service.py      # Admin config commands + redemption
"""

__version__ = "0.1.0"
