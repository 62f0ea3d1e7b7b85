"""
kudos.bootstrap — Service Wiring & Entry Point
===============================================

Wiring:
1. Load .env (secrets, storage overrides).
2. Load config.yaml (infrastructure settings).
3. Configure logging.
4. Pick the snapshot store (SQL when a database URL is set, else JSON file).
5. Build the ledger, recognition service, and admin service.

The chat transport receives the resulting :class:`KudosServices` and calls
``recognition.process_recognitions_with_groups`` for each message.

Run with::

    python -m kudos
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dotenv import load_dotenv

from kudos.config import KudosConfig, load_config
from kudos.database.engine import create_db_engine, init_db
from kudos.engine.resolvers import StaticGroupResolver
from kudos.services.admin_service import AdminService
from kudos.services.ledger import PointsLedger
from kudos.services.recognition_service import RecognitionService
from kudos.services.snapshot_store import JsonFileStore, SnapshotStore, SqlSnapshotStore

logger = logging.getLogger("kudos")

LOG_FORMAT = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")


@dataclass(slots=True)
class KudosServices:
    """Everything a transport needs, built once per process."""

    cfg: KudosConfig
    ledger: PointsLedger
    recognition: RecognitionService
    admin: AdminService
    groups: StaticGroupResolver


def create_store(cfg: KudosConfig) -> SnapshotStore:
    """SQL snapshot store when a database URL is configured, else JSON file."""
    if cfg.database_url:
        engine = create_db_engine(cfg.database_url)
        init_db(engine)
        return SqlSnapshotStore(engine)
    logger.info("Using JSON snapshot store at %s", cfg.data_file)
    return JsonFileStore(cfg.data_file)


def build_services(cfg: KudosConfig, store: SnapshotStore | None = None) -> KudosServices:
    """Wire store → ledger → services."""
    ledger = PointsLedger(store if store is not None else create_store(cfg))
    return KudosServices(
        cfg=cfg,
        ledger=ledger,
        recognition=RecognitionService(
            ledger, group_lookup_timeout=cfg.group_lookup_timeout
        ),
        admin=AdminService(ledger, cfg.admin_users),
        groups=StaticGroupResolver(cfg.groups),
    )


def main() -> KudosServices:
    """Bootstrap the core services from ``.env`` and ``config.yaml``."""
    load_dotenv()
    configure_logging()

    cfg = load_config()
    logger.info("Config loaded — Community: %s", cfg.community_name)

    services = build_services(cfg)
    logger.info(
        "Kudos ready: %d admins, %d static groups",
        len(cfg.admin_users),
        len(cfg.groups),
    )
    return services
