"""
kudos.engine.resolvers — Group Resolver Adapters
=================================================

The parser's only external collaborator: turning a group reference
(Slack user group, Discord role) into individual user ids.

Resolvers are injected, never imported by the parser as a concrete client,
so the multi-recognition path is testable without any chat transport.
:func:`resolve_group_safely` is the boundary the parser calls: it imposes a
timeout and converts every lookup failure into an empty member list.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol, runtime_checkable

import discord

from kudos.constants import DEFAULT_GROUP_LOOKUP_TIMEOUT

logger = logging.getLogger(__name__)

__all__ = [
    "DiscordRoleResolver",
    "GroupResolver",
    "StaticGroupResolver",
    "resolve_group_safely",
]


@runtime_checkable
class GroupResolver(Protocol):
    """Anything that can list the members of a group id."""

    async def resolve_group_members(self, group_id: str) -> Sequence[str]:
        ...


class StaticGroupResolver:
    """Membership from a fixed mapping (``groups:`` in config.yaml, tests)."""

    def __init__(self, groups: Mapping[str, Iterable[str]] | None = None) -> None:
        self._groups: dict[str, list[str]] = {
            str(gid): [str(m) for m in members]
            for gid, members in (groups or {}).items()
        }

    async def resolve_group_members(self, group_id: str) -> list[str]:
        return list(self._groups.get(group_id, []))


class DiscordRoleResolver:
    """Expand ``<@&role_id>`` mentions to the role's current guild members.

    Requires the ``members`` intent so ``role.members`` is populated.
    Non-numeric group ids are looked up by role name.
    """

    def __init__(self, guild: discord.Guild, *, include_bots: bool = False) -> None:
        self._guild = guild
        self._include_bots = include_bots

    async def resolve_group_members(self, group_id: str) -> list[str]:
        if group_id.isdigit():
            role = self._guild.get_role(int(group_id))
        else:
            role = discord.utils.get(self._guild.roles, name=group_id)
        if role is None:
            logger.warning("Role %s not found in guild %s", group_id, self._guild.id)
            return []
        return [
            str(member.id)
            for member in role.members
            if self._include_bots or not member.bot
        ]


async def resolve_group_safely(
    resolver: GroupResolver,
    group_id: str,
    timeout: float | None = DEFAULT_GROUP_LOOKUP_TIMEOUT,
) -> list[str]:
    """Resolve *group_id*, returning ``[]`` on timeout or any lookup error."""
    try:
        members = await asyncio.wait_for(
            resolver.resolve_group_members(group_id), timeout
        )
    except TimeoutError:
        logger.warning("Group lookup for %s timed out after %ss", group_id, timeout)
        return []
    except Exception:
        logger.warning("Group lookup for %s failed", group_id, exc_info=True)
        return []
    return [str(m) for m in members or ()]
