"""
Contributor-Only License v1.0

This file is licensed under the Contributor-Only License. Usage is restricted to
non-commercial purposes. Distribution, sublicensing, and sharing of this file
are prohibited except by the original owner.

Modifications are allowed solely for contributing purposes and must not
misrepresent the original material. This license does not grant any
patent rights or trademark rights.

Full license terms are available in the LICENSE file at the root of the repository.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Tuple

import discord

from utils import RUNNING_DEVELOPMENT, PlatformActionError, ResolveError

from .lookups import fetch_assignable_roles, resolve_guild
from .monitors import MonitorStore

if TYPE_CHECKING:
    from bot import RolesBot

__all__: Tuple[str, ...] = ('ReactionResolver',)

_log = logging.getLogger(__name__)
if RUNNING_DEVELOPMENT:
    _log.setLevel(logging.DEBUG)


class ReactionResolver:
    """Matches raw reaction events against the monitor store and grants the paired roles.

    Parameters
    ----------
    bot: :class:`RolesBot`
        The bot instance.
    store: :class:`MonitorStore`
        The monitors to match against.
    """

    def __init__(self, bot: RolesBot, *, store: MonitorStore) -> None:
        self.bot: RolesBot = bot
        self.store: MonitorStore = store

    async def _resolve_member(self, guild: discord.Guild, payload: discord.RawReactionActionEvent) -> discord.Member:
        member = payload.member or guild.get_member(payload.user_id)
        if member is not None:
            return member

        try:
            return await guild.fetch_member(payload.user_id)
        except discord.HTTPException as exc:
            raise ResolveError(f'Could not find member {payload.user_id} in {guild.name}.') from exc

    async def handle_reaction(self, payload: discord.RawReactionActionEvent) -> List[discord.Role]:
        """|coro|

        Grant the roles paired with a reaction. Reactions outside of guilds, custom emoji
        and reactions on messages that aren't monitored are ignored.

        Parameters
        ----------
        payload: :class:`discord.RawReactionActionEvent`
            The raw reaction add event.

        Returns
        -------
        List[:class:`discord.Role`]
            The roles that were granted.

        Raises
        ------
        ResolveError
            The guild, the member or a paired role could not be found.
        PlatformActionError
            Discord refused to grant a role.
        """
        if payload.guild_id is None:
            return []

        if payload.emoji.is_custom_emoji() or not payload.emoji.name:
            return []

        pairs = await self.store.find(payload.channel_id, payload.message_id, payload.emoji.name)
        if not pairs:
            return []

        _log.debug('Reaction %s by %s on monitored message %s', payload.emoji.name, payload.user_id, payload.message_id)

        guild = await resolve_guild(self.bot, payload.guild_id)
        member = await self._resolve_member(guild, payload)
        roles = await fetch_assignable_roles(guild)

        granted: List[discord.Role] = []
        for pair in pairs:
            role = discord.utils.get(roles, name=pair.role_name)
            if role is None:
                raise ResolveError(
                    f'The role {pair.role_name!r} paired with {pair.emoji} no longer exists in {guild.name}.'
                )

            # Discord treats granting a role the member already has as a no-op.
            try:
                await member.add_roles(role, reason='Reaction roles')
            except discord.HTTPException as exc:
                raise PlatformActionError(f'Could not give {role.name} to {member}.') from exc

            _log.info('Gave role %s to member %s in guild %s', role.name, member.id, guild.id)
            granted.append(role)

        return granted
