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
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from utils import BaseCog, Context, ReactionRoleException

from .interview import *
from .lookups import *
from .monitors import *
from .resolution import *

if TYPE_CHECKING:
    from bot import RolesBot

_log = logging.getLogger(__name__)


class ReactionRoles(BaseCog):
    """Set up posts whose reactions hand out roles."""

    def __init__(self, bot: RolesBot) -> None:
        super().__init__(bot)
        self.interviews: InterviewFlow = InterviewFlow(bot, registry=bot.interviews, store=bot.monitor_store)
        self.resolver: ReactionResolver = ReactionResolver(bot, store=bot.monitor_store)

    @commands.command(name='setup', description='Setup a new post to watch')
    @commands.guild_only()
    async def setup_command(self, ctx: Context) -> None:
        """Start setting up a reaction role post in this channel. The rest happens in your DMs."""
        await self.interviews.start(ctx)

    @commands.Cog.listener('on_message')
    async def interview_listener(self, message: discord.Message) -> None:
        """|coro|

        Routes private messages to the author's setup, if they have one.

        Parameters
        ----------
        message: :class:`discord.Message`
            The message that was sent.
        """
        if message.guild is not None or message.author.bot:
            # In guilds, users use the commands to interact with the bot
            return

        ctx = await self.bot.get_context(message)
        if ctx.valid:
            return

        await self.interviews.handle_message(message)

    @commands.Cog.listener('on_raw_reaction_add')
    async def reaction_listener(self, payload: discord.RawReactionActionEvent) -> None:
        """|coro|

        Grants the roles paired with a reaction on a monitored message.

        Parameters
        ----------
        payload: :class:`discord.RawReactionActionEvent`
            The raw payload given to the client from a reaction being added.
        """
        try:
            await self.resolver.handle_reaction(payload)
        except ReactionRoleException as exc:
            if self.bot.error_handler is None:
                _log.error('Failed to handle reaction on message %s', payload.message_id, exc_info=exc)
                return

            await self.bot.error_handler.log_error(exc, event_name='raw_reaction_add')


async def setup(bot: RolesBot) -> None:
    await bot.add_cog(ReactionRoles(bot))
