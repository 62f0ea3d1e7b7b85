"""
kudos.engine.parser — Recognition Parsing Pipeline
===================================================

Pure parsing: no persistence, no limit checks.  Text goes through two
stages::

    tokenize() → scan_units() → RecognitionUnit[] → Recognition[]

A *recognition unit* is one or more target references, a ``+`` run (the
point count), a free-text reason, and an optional ``#tag``.  A unit runs
until the next target reference or the end of the text; anything between
its tag and the next target is ignored.

Three entry points:

* :func:`parse_recognition` — strict single-target mode, at most one result.
* :func:`parse_recognitions` — every unit, individual targets only.
* :func:`parse_recognitions_with_groups` — every unit, with group expansion
  through an injected :class:`~kudos.engine.resolvers.GroupResolver`.

Malformed input never raises; it just yields fewer candidates.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from kudos.constants import DEFAULT_GROUP_LOOKUP_TIMEOUT, DEFAULT_VALUE, normalize_value
from kudos.engine.events import Recognition
from kudos.engine.resolvers import GroupResolver, resolve_group_safely
from kudos.engine.state import LedgerConfig
from kudos.engine.tokenizer import TokenKind, tokenize

logger = logging.getLogger(__name__)

__all__ = [
    "RecognitionUnit",
    "TargetRef",
    "parse_recognition",
    "parse_recognitions",
    "parse_recognitions_with_groups",
    "scan_units",
]

# Text allowed between two target references of the same unit
_TARGET_SEPARATOR_RE = re.compile(r"[\s,]*")


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TargetRef:
    """An individual (USER) or group (GROUP) reference inside a unit."""

    kind: TokenKind
    ident: str

    @property
    def is_group(self) -> bool:
        return self.kind is TokenKind.GROUP


@dataclass(slots=True)
class RecognitionUnit:
    """One syntactic recognition: targets, points, reason, optional tag."""

    targets: list[TargetRef]
    points: int
    reason_parts: list[str] = field(default_factory=list)
    tag: str | None = None

    @property
    def reason(self) -> str:
        return "".join(self.reason_parts).strip()


def scan_units(text: str) -> list[RecognitionUnit]:
    """Scan *text* into syntactic units, left to right.

    States: collecting targets (``current is None``) or reading a unit's
    reason.  A target token always closes the open unit and starts a new
    target list.  Non-separator text, a tag, or a ``+`` run with no
    pending targets discards the pending targets.
    """
    units: list[RecognitionUnit] = []
    pending: list[TargetRef] = []
    current: RecognitionUnit | None = None

    for tok in tokenize(text):
        if tok.kind in (TokenKind.USER, TokenKind.GROUP):
            if current is not None:
                units.append(current)
                current = None
            pending.append(TargetRef(tok.kind, tok.value))
            continue

        if current is None:
            if tok.kind is TokenKind.PLUS and pending:
                current = RecognitionUnit(targets=pending, points=len(tok.value))
                pending = []
            elif tok.kind is TokenKind.TEXT and _TARGET_SEPARATOR_RE.fullmatch(tok.value):
                continue
            else:
                pending = []
            continue

        if current.tag is not None:
            # Tag closes the unit; skip until the next target
            continue
        if tok.kind is TokenKind.TAG:
            current.tag = tok.value
        else:
            current.reason_parts.append(tok.value)

    if current is not None:
        units.append(current)
    return units


# ---------------------------------------------------------------------------
# Semantic checks
# ---------------------------------------------------------------------------
def _resolve_value(unit: RecognitionUnit, config: LedgerConfig) -> str | None:
    """Value tag for *unit*, or ``None`` if the unit is invalid."""
    if unit.tag is None:
        if not unit.reason:
            logger.debug("Dropping unit with neither reason nor tag")
            return None
        return DEFAULT_VALUE

    value = normalize_value(unit.tag)
    if not config.is_valid_value(value):
        logger.debug("Dropping unit with unknown value tag #%s", value)
        return None
    return value


def _build(
    unit: RecognitionUnit,
    value: str,
    receivers: Iterable[str],
    giver_id: str,
    timestamp: datetime,
) -> list[Recognition]:
    """One Recognition per distinct receiver, self-recognition removed."""
    out: list[Recognition] = []
    seen: set[str] = set()
    for receiver in receivers:
        if receiver == giver_id:
            logger.debug("Dropping self-recognition by %s", giver_id)
            continue
        if receiver in seen:
            continue
        seen.add(receiver)
        out.append(
            Recognition(
                giver=giver_id,
                receiver=receiver,
                reason=unit.reason,
                value=value,
                points=unit.points,
                timestamp=timestamp,
            )
        )
    return out


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------
def parse_recognition(
    text: str, giver_id: str, config: LedgerConfig
) -> Recognition | None:
    """Strict single-recognition parse.

    Only units with exactly one individual target qualify; the first one
    that yields a valid recognition wins.
    """
    now = datetime.now(UTC)
    for unit in scan_units(text):
        if len(unit.targets) != 1 or unit.targets[0].is_group:
            continue
        value = _resolve_value(unit, config)
        if value is None:
            continue
        built = _build(unit, value, [unit.targets[0].ident], giver_id, now)
        if built:
            return built[0]
    return None


def parse_recognitions(
    text: str, giver_id: str, config: LedgerConfig
) -> list[Recognition]:
    """Every recognition in *text*, without group expansion.

    Group references cannot be resolved synchronously and contribute no
    receivers here.
    """
    now = datetime.now(UTC)
    results: list[Recognition] = []
    for unit in scan_units(text):
        value = _resolve_value(unit, config)
        if value is None:
            continue
        receivers = [t.ident for t in unit.targets if not t.is_group]
        results.extend(_build(unit, value, receivers, giver_id, now))
    return results


async def parse_recognitions_with_groups(
    text: str,
    giver_id: str,
    config: LedgerConfig,
    resolver: GroupResolver,
    *,
    timeout: float | None = DEFAULT_GROUP_LOOKUP_TIMEOUT,
) -> list[Recognition]:
    """Every recognition in *text*, expanding group references in place.

    Each group id is looked up at most once per message.  A failed or
    timed-out lookup expands to no receivers; the rest of the message is
    still parsed.
    """
    now = datetime.now(UTC)
    members_by_group: dict[str, list[str]] = {}
    results: list[Recognition] = []

    for unit in scan_units(text):
        value = _resolve_value(unit, config)
        if value is None:
            continue

        receivers: list[str] = []
        for target in unit.targets:
            if not target.is_group:
                receivers.append(target.ident)
                continue
            if target.ident not in members_by_group:
                members_by_group[target.ident] = await resolve_group_safely(
                    resolver, target.ident, timeout
                )
            receivers.extend(members_by_group[target.ident])

        results.extend(_build(unit, value, receivers, giver_id, now))
    return results
