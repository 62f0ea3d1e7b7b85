"""
kudos.services.recognition_service — Parser → Ledger Orchestration
===================================================================

Bridges the pure parser and the persisted ledger.  This is where the
"at most N points per giver per day" rule is enforced end to end:

1. Parse candidates from the message (``kudos.engine.parser``)
2. For each candidate, in parse order, under the ledger lock:
   a. ``can_give_points`` — denied candidates are silently dropped
   b. ``record_recognition`` — persists the full snapshot
3. Return the accepted candidates

Limits are re-checked after every acceptance, so within one message the
earliest recognitions win.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from kudos.constants import DEFAULT_GROUP_LOOKUP_TIMEOUT
from kudos.database.engine import run_db
from kudos.engine.events import Recognition
from kudos.engine.parser import (
    parse_recognition,
    parse_recognitions,
    parse_recognitions_with_groups,
)
from kudos.engine.resolvers import GroupResolver
from kudos.services.ledger import PointsLedger

logger = logging.getLogger(__name__)


class RecognitionService:
    """Turns chat messages into recorded recognitions."""

    def __init__(
        self,
        ledger: PointsLedger,
        *,
        group_lookup_timeout: float | None = DEFAULT_GROUP_LOOKUP_TIMEOUT,
    ) -> None:
        self.ledger = ledger
        self.group_lookup_timeout = group_lookup_timeout

    def accept_candidates(self, candidates: Iterable[Recognition]) -> list[Recognition]:
        """Record every candidate the giver can still afford; return those."""
        accepted: list[Recognition] = []
        for candidate in candidates:
            with self.ledger.lock:
                if not self.ledger.can_give_points(candidate.giver, candidate.points):
                    logger.info(
                        "Daily limit reached: %s cannot give %d to %s",
                        candidate.giver,
                        candidate.points,
                        candidate.receiver,
                    )
                    continue
                self.ledger.record_recognition(candidate)
            accepted.append(candidate)
        return accepted

    def process_recognition(self, text: str, giver_id: str) -> Recognition | None:
        """Strict single-recognition flow.  Returns the recorded award or None."""
        candidate = parse_recognition(text, giver_id, self.ledger.get_config())
        if candidate is None:
            return None
        accepted = self.accept_candidates([candidate])
        return accepted[0] if accepted else None

    def process_recognitions(self, text: str, giver_id: str) -> list[Recognition]:
        """Every recognition in *text* (individual targets only)."""
        candidates = parse_recognitions(text, giver_id, self.ledger.get_config())
        return self.accept_candidates(candidates)

    async def process_recognitions_with_groups(
        self,
        text: str,
        giver_id: str,
        resolver: GroupResolver,
        timeout: float | None = None,
    ) -> list[Recognition]:
        """Every recognition in *text*, with group references expanded.

        Group lookups run on the event loop, each bounded by *timeout*
        (defaults to the service-wide lookup timeout).  Every ledger call
        takes the ledger lock, which a concurrent snapshot write may hold,
        so both the config read and the writes run via :func:`run_db`.
        """
        config = await run_db(self.ledger.get_config)
        candidates = await parse_recognitions_with_groups(
            text,
            giver_id,
            config,
            resolver,
            timeout=timeout if timeout is not None else self.group_lookup_timeout,
        )
        if not candidates:
            return []
        return await run_db(self.accept_candidates, candidates)
