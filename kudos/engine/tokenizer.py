"""
kudos.engine.tokenizer — Chat Text Tokenizer
=============================================

Splits raw chat text into the handful of token kinds the recognition
grammar cares about.  Everything else is :attr:`TokenKind.TEXT`.

==========  ====================================================
Kind        Syntax
==========  ====================================================
USER        ``<@U123>``, ``<@U123|alice>``, ``<@123>``, ``<@!123>``
GROUP       ``<!subteam^S123>``, ``<!subteam^S123|@team>``, ``<@&123>``
PLUS        one or more consecutive ``+``
TAG         ``#`` followed by word characters
TEXT        anything else (adjacent text is merged into one token)
==========  ====================================================
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterator
from dataclasses import dataclass

__all__ = ["Token", "TokenKind", "tokenize"]


class TokenKind(enum.StrEnum):
    USER = "user"
    GROUP = "group"
    PLUS = "plus"
    TAG = "tag"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class Token:
    """One lexical token.

    ``value`` is the user/group id for mentions, the bare tag for TAG,
    and the raw source text for PLUS and TEXT.
    """

    kind: TokenKind
    value: str
    start: int


# ---------------------------------------------------------------------------
# Patterns, each anchored at the scan position via ``pattern.match(text, pos)``
# ---------------------------------------------------------------------------
_USER_RE = re.compile(r"<@!?([A-Za-z0-9]+)(?:\|[^>]*)?>")
_SUBTEAM_RE = re.compile(r"<!subteam\^([A-Za-z0-9]+)(?:\|[^>]*)?>")
_ROLE_RE = re.compile(r"<@&([0-9]+)>")
_PLUS_RE = re.compile(r"\++")
_TAG_RE = re.compile(r"#(\w+)")

_MENTION_PATTERNS: tuple[tuple[TokenKind, re.Pattern[str]], ...] = (
    (TokenKind.USER, _USER_RE),
    (TokenKind.GROUP, _SUBTEAM_RE),
    (TokenKind.GROUP, _ROLE_RE),
)

# Characters that may start a non-TEXT token
_TRIGGERS = frozenset("<+#")


def _match_at(text: str, pos: int) -> tuple[TokenKind, re.Match[str]] | None:
    ch = text[pos]
    if ch == "<":
        for kind, pattern in _MENTION_PATTERNS:
            m = pattern.match(text, pos)
            if m:
                return kind, m
    elif ch == "+":
        return TokenKind.PLUS, _PLUS_RE.match(text, pos)
    elif ch == "#":
        m = _TAG_RE.match(text, pos)
        if m:
            return TokenKind.TAG, m
    return None


def tokenize(text: str) -> Iterator[Token]:
    """Yield tokens for *text* left to right.  Never raises."""
    pos = 0
    length = len(text)
    text_start: int | None = None

    while pos < length:
        hit = _match_at(text, pos) if text[pos] in _TRIGGERS else None
        if hit is None:
            if text_start is None:
                text_start = pos
            pos += 1
            continue

        if text_start is not None:
            yield Token(TokenKind.TEXT, text[text_start:pos], text_start)
            text_start = None

        kind, m = hit
        value = m.group(0) if kind is TokenKind.PLUS else m.group(1)
        yield Token(kind, value, pos)
        pos = m.end()

    if text_start is not None:
        yield Token(TokenKind.TEXT, text[text_start:], text_start)
