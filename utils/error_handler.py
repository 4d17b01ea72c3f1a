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

import datetime
import logging
import os
import sys
import traceback
from typing import TYPE_CHECKING, Any, Dict, Generator, List, Optional, Tuple, TypeAlias

import discord
from discord.ext import commands

from .context import Context
from .errors import *

if TYPE_CHECKING:
    from bot import RolesBot

__all__: Tuple[str, ...] = ('ErrorHandler',)


_log = logging.getLogger(__name__)

Traceback: TypeAlias = Dict[str, Any]


class PacketManager:
    """An extension to the error handler that formats errors, logs them and,
    when ``EXCEPTION_WEBHOOK_URL`` is set, sends them to a webhook.

    Attributes
    ----------
    bot: :class:`RolesBot`
        The bot instance.
    """

    __slots__: Tuple[str, ...] = ('bot', '_code_blocker', '_error_webhook')

    def __init__(self, bot: RolesBot) -> None:
        self.bot: RolesBot = bot

        self._code_blocker: str = '```py\n{}```'

        self._error_webhook: Optional[discord.Webhook] = None
        webhook_url = os.environ.get('EXCEPTION_WEBHOOK_URL')
        if webhook_url:
            self._error_webhook = discord.Webhook.from_url(webhook_url, session=bot.session, bot_token=bot.http.token)

    def _yield_code_chunks(self, iterable: str, *, chunks: int = 2000) -> Generator[str, None, None]:
        code_blocker_size: int = len(self._code_blocker) - 2

        for i in range(0, len(iterable), chunks - code_blocker_size):
            yield self._code_blocker.format(iterable[i : i + chunks - code_blocker_size])

    async def _release_error(self, traceback_str: str, packet: Traceback) -> None:
        _log.error('Releasing error to log', exc_info=packet['exception'])

        webhook = self._error_webhook
        if webhook is None:
            return

        embed = discord.Embed(title=f'An error has occurred in {packet["command"]}', timestamp=packet['time'])
        embed.add_field(
            name='Metadata',
            value='\n'.join([f'**{k.title()}**: {v}' for k, v in packet.items()]),
        )

        kwargs: Dict[str, Any] = {}
        if self.bot.user:
            kwargs['username'] = self.bot.user.display_name
            kwargs['avatar_url'] = self.bot.user.display_avatar.url

            embed.set_author(name=str(self.bot.user), icon_url=self.bot.user.display_avatar.url)

        if webhook.is_partial():
            self._error_webhook = webhook = await webhook.fetch()

        code_chunks = list(self._yield_code_chunks(traceback_str))

        embed.description = code_chunks.pop(0)
        await webhook.send(embed=embed, **kwargs)

        embeds: List[discord.Embed] = []
        for entry in code_chunks:
            embed = discord.Embed(description=entry)
            if self.bot.user:
                embed.set_author(name=str(self.bot.user), icon_url=self.bot.user.display_avatar.url)

            embeds.append(embed)

            if len(embeds) == 10:
                await webhook.send(embeds=embeds, **kwargs)
                embeds = []

        if embeds:
            await webhook.send(embeds=embeds, **kwargs)

    async def add_error(
        self,
        *,
        error: BaseException,
        target: Optional[Context] = None,
        event_name: Optional[str] = None,
    ) -> None:
        """|coro|

        Add an error to the error manager. This is the recommended way to add errors.

        Parameters
        ----------
        error: :class:`BaseException`
            The error to add.
        target: Optional[:class:`Context`]
            The invocation context of the error, if any.
        event_name: Optional[:class:`str`]
            The name of the event that raised the error, if any.
        """
        _log.info('Adding error "%s" to log.', str(error))

        created: datetime.datetime = discord.utils.utcnow()
        packet: Traceback = {'exception': error, 'time': created, 'command': 'no command'}

        if event_name:
            packet['event_name'] = event_name

        if target is not None:
            packet['time'] = target.message.created_at
            addons: Dict[str, Optional[str]] = {
                'command': target.command and target.command.qualified_name,
                'author': f'<@{target.author.id}> ({target.author.id})',
                'guild': target.guild and f'{target.guild.name} ({target.guild.id})',
                'channel': f'<#{target.channel.id}>',
            }
            packet.update(addons)

        traceback_string = ''.join(traceback.format_exception(type(error), error, error.__traceback__))

        await self._release_error(traceback_string, packet)


class ErrorHandler:
    """The base error handler for the client. This is a class that listens
    for any exceptions that are raised in the bot and handles them.

    This class uses :class:`PacketManager` to log errors and forward them to the error webhook.

    Parameters
    ----------
    bot: :class:`RolesBot`
        The bot instance.

    Attributes
    ----------
    bot: :class:`RolesBot`
        The bot instance.
    """

    def __init__(self, bot: RolesBot) -> None:
        self.bot: RolesBot = bot

        self.__packet_manager: PacketManager = PacketManager(bot)
        self.inject()

    def inject(self) -> None:
        """A helper method to inject the error handler into the bot."""
        self.bot.on_error = self.handle_on_error  # type: ignore
        self.bot.on_command_error = self.handle_on_command_error  # type: ignore

    def eject(self) -> None:
        """A helper method to eject the error handler from the bot."""
        self.bot.on_error = super(commands.Bot, self.bot).on_error  # type: ignore
        self.bot.on_command_error = super(commands.Bot, self.bot).on_command_error  # type: ignore

    @property
    def packet_manager(self) -> PacketManager:
        return self.__packet_manager

    async def log_error(
        self,
        exception: BaseException,
        *,
        target: Optional[Context] = None,
        event_name: Optional[str] = None,
    ) -> None:
        """|coro|

        A coroutine used to log an error. When a context is given, the user is told
        something went wrong.

        Parameters
        ----------
        exception: :class:`BaseException`
            The exception to log.
        target: Optional[:class:`Context`]
            The origin of the error.
        event_name: Optional[:class:`str`]
            The name of the event that raised the error.
        """
        if target is not None:
            await target.send('Oh no! Something went wrong! I\'ve notified the developer to get this issue fixed, my apologies!')

        await self.__packet_manager.add_error(error=exception, target=target, event_name=event_name)

    async def _attempt_handle_known_error(self, ctx: Context, error: Exception) -> Optional[discord.Message]:
        while hasattr(error, 'original'):
            error = getattr(error, 'original')

        if isinstance(error, ReactionRoleException):
            return await ctx.reply(str(error))

        if isinstance(error, commands.CommandNotFound):
            _log.debug('Got unrecognized command %r', ctx.invoked_with)
            return

        if isinstance(error, commands.NoPrivateMessage):
            return await ctx.reply('This command only works in a server channel, not in DMs.')

        if isinstance(error, commands.CheckFailure):
            return await ctx.reply(f'Ope! {error}')

        if isinstance(error, commands.UserInputError):
            return await ctx.reply(f'Oop! {error}')

        await self.log_error(error, target=ctx)

    async def handle_on_command_error(self, ctx: Context, error: Exception) -> None:
        await self._attempt_handle_known_error(ctx, error=error)

    async def handle_on_error(self, event_method: str, *args: Any, **kwargs: Any) -> None:
        """|coro|

        A method called whenever there's an exception raised while processing an event.

        Parameters
        ----------
        event_method: :class:`str`
            The name of the event that raised the error.
        *args: Any
            The positional arguments that were passed to the event.
        **kwargs: Any
            The keyword arguments that were passed to the event.
        """
        _, error, _ = sys.exc_info()
        if not error:
            raise RuntimeError('No error was passed to the error handler.')

        await self.__packet_manager.add_error(error=error, target=None, event_name=event_method)


async def setup(bot: RolesBot) -> None:
    bot.error_handler = ErrorHandler(bot)


async def teardown(bot: RolesBot) -> None:
    if bot.error_handler:
        bot.error_handler.eject()
