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

import asyncio
import dataclasses
import enum
import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import discord
import emoji as emoji_lib

from utils import (
    PERSIST_BEFORE_POST,
    RUNNING_DEVELOPMENT,
    Context,
    PlatformActionError,
    ReactionRoleException,
    ResolveError,
    StorageError,
    UserInputError,
    human_join,
)

from .lookups import fetch_assignable_roles, resolve_guild
from .monitors import VARIATION_SELECTOR_16, Monitor, MonitorStore, ReactionRole

if TYPE_CHECKING:
    from bot import RolesBot

__all__: Tuple[str, ...] = (
    'InterviewStage',
    'InterviewState',
    'InterviewRegistry',
    'InterviewFlow',
    'ParseStatus',
    'ParseResult',
    'parse_reaction_role',
)

_log = logging.getLogger(__name__)
if RUNNING_DEVELOPMENT:
    _log.setLevel(logging.DEBUG)

QUIT_KEYWORD: str = 'quit'
DONE_KEYWORD: str = 'done'

PAIRING_INSTRUCTIONS: str = (
    'Got it.\n\nNow, enter an emoji and the role name, 1 pair per message with a space between, '
    'like [emoji] [role name]. Send a \'done\' message when done.'
)
FORMAT_ERROR_MESSAGE: str = 'Doesn\'t look like the message format was right - it\'s [emoji] [role name]'

# Every channel type a guild can hold that the bot can post in.
SUPPORTED_CHANNEL_TYPES = (discord.TextChannel, discord.VoiceChannel, discord.StageChannel, discord.Thread)


class InterviewStage(enum.Enum):
    awaiting_content = 'awaiting_content'
    awaiting_reactions = 'awaiting_reactions'


@dataclasses.dataclass
class InterviewState:
    """The setup of a single user, built up one private message at a time.

    Attributes
    ----------
    user_id: :class:`int`
        The user running the setup.
    channel_id: :class:`int`
        The channel the setup command was used in, where the post will go.
    guild_id: :class:`int`
        The guild of that channel.
    post_content: Optional[:class:`str`]
        The content of the post, once given.
    reactions: List[:class:`ReactionRole`]
        The validated pairs, in the order they were given.
    """

    user_id: int
    channel_id: int
    guild_id: int
    post_content: Optional[str] = None
    reactions: List[ReactionRole] = dataclasses.field(default_factory=list)

    @property
    def stage(self) -> InterviewStage:
        if self.post_content is None:
            return InterviewStage.awaiting_content

        return InterviewStage.awaiting_reactions


class ParseStatus(enum.Enum):
    ok = 'ok'
    format_error = 'format_error'
    empty_input = 'empty_input'


class ParseResult:
    __slots__: Tuple[str, ...] = ('status', 'pair')

    def __init__(self, status: ParseStatus, pair: Optional[ReactionRole] = None) -> None:
        self.status: ParseStatus = status
        self.pair: Optional[ReactionRole] = pair

    def __repr__(self) -> str:
        return f'<ParseResult status={self.status!r} pair={self.pair!r}>'

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.ok


def _leading_glyph(content: str) -> Tuple[str, bool]:
    # Multi code point emoji (skin tones, flags, keycaps, ZWJ sequences) count as one glyph.
    found = emoji_lib.emoji_list(content)
    if found and found[0]['match_start'] == 0:
        return found[0]['emoji'], True

    first = content[0]
    return first, emoji_lib.is_emoji(first) or emoji_lib.is_emoji(first + VARIATION_SELECTOR_16)


def parse_reaction_role(content: str) -> ParseResult:
    """Parse a pairing message of the form ``<emoji><separator><role name>``.

    The first glyph is the emoji, exactly one separator character after it is skipped
    and everything left is the role name, untouched.

    Parameters
    ----------
    content: :class:`str`
        The content of the message.

    Returns
    -------
    :class:`ParseResult`
        The tagged result. ``pair`` is only set when the status is :attr:`ParseStatus.ok`.
    """
    if not content:
        return ParseResult(ParseStatus.empty_input)

    glyph, is_emoji = _leading_glyph(content)
    role_name = content[len(glyph) + 1 :]
    if not is_emoji or not role_name:
        return ParseResult(ParseStatus.format_error)

    return ParseResult(ParseStatus.ok, ReactionRole(emoji=glyph, role_name=role_name))


class InterviewRegistry:
    """Holds the in-progress setup of every user, at most one per user.

    Every operation takes :attr:`lock`. Operations that change a state are handed the
    state the caller is working with and only apply when that exact state is still
    the registered one, so a replaced, quit or finished setup is never written to.
    """

    __slots__: Tuple[str, ...] = ('lock', '_states')

    def __init__(self) -> None:
        self.lock: asyncio.Lock = asyncio.Lock()
        self._states: Dict[int, InterviewState] = {}

    def __repr__(self) -> str:
        return f'<InterviewRegistry active={len(self._states)}>'

    def __len__(self) -> int:
        return len(self._states)

    def _is_current(self, state: InterviewState) -> bool:
        return self._states.get(state.user_id) is state

    async def get(self, user_id: int, /) -> Optional[InterviewState]:
        async with self.lock:
            return self._states.get(user_id)

    async def upsert(self, state: InterviewState, /) -> Optional[InterviewState]:
        """|coro|

        Register a state, replacing and returning the user's previous one if any.
        """
        async with self.lock:
            previous = self._states.get(state.user_id)
            self._states[state.user_id] = state
            return previous

    async def restore(self, state: InterviewState, /) -> bool:
        """|coro|

        Put back a state that was taken, unless the user started a new setup meanwhile.
        """
        async with self.lock:
            if state.user_id in self._states:
                return False

            self._states[state.user_id] = state
            return True

    async def take(self, state: InterviewState, /) -> bool:
        """|coro|

        Remove the state if it is still registered. Only one caller can ever
        get ``True`` for a given state.
        """
        async with self.lock:
            if not self._is_current(state):
                return False

            del self._states[state.user_id]
            return True

    async def set_content(self, state: InterviewState, content: str, /) -> bool:
        async with self.lock:
            if not self._is_current(state) or state.post_content is not None:
                return False

            state.post_content = content
            return True

    async def add_reaction_role(self, state: InterviewState, pair: ReactionRole, /) -> bool:
        async with self.lock:
            if not self._is_current(state):
                return False

            state.reactions.append(pair)
            return True


class InterviewFlow:
    """Drives the private conversation that turns a setup command into a posted,
    monitored message.

    Parameters
    ----------
    bot: :class:`RolesBot`
        The bot instance.
    registry: :class:`InterviewRegistry`
        Where in-progress setups live.
    store: :class:`MonitorStore`
        Where finished setups are recorded.
    persist_before_post: :class:`bool`
        Whether to check the store can be written before posting anything.
    """

    def __init__(
        self,
        bot: RolesBot,
        *,
        registry: InterviewRegistry,
        store: MonitorStore,
        persist_before_post: bool = PERSIST_BEFORE_POST,
    ) -> None:
        self.bot: RolesBot = bot
        self.registry: InterviewRegistry = registry
        self.store: MonitorStore = store
        self.persist_before_post: bool = persist_before_post

    async def start(self, ctx: Context) -> Optional[InterviewState]:
        """|coro|

        Start a setup for the command author, targeting the channel the command was used in.

        Returns
        -------
        Optional[:class:`InterviewState`]
            The new state, or ``None`` when the author could not be messaged.
        """
        assert ctx.guild is not None

        state = InterviewState(user_id=ctx.author.id, channel_id=ctx.channel.id, guild_id=ctx.guild.id)
        previous = await self.registry.upsert(state)

        label = 'Let\'s do it! Check your DMs.'
        if previous is not None:
            label += ' Your previous unfinished setup was discarded.'

        await ctx.reply(Context.tick(True, label))
        _log.info('User %s started a setup in channel %s (guild %s)', ctx.author.id, ctx.channel.id, ctx.guild.id)

        try:
            await ctx.author.send(
                f'Setup post in {ctx.channel.mention}. Enter the content of the post as a reply to this.'
            )
        except discord.HTTPException:
            await self.registry.take(state)
            await ctx.reply(Context.tick(False, 'I couldn\'t DM you. Please allow DMs from server members and try again.'))
            return None

        return state

    async def handle_message(self, message: discord.Message) -> None:
        """|coro|

        Advance the author's setup by one step. Messages from guild channels, from bots
        and from users without a setup are ignored.

        User facing failures are replied to the author and never raised.
        """
        if message.guild is not None or message.author.bot:
            return

        state = await self.registry.get(message.author.id)
        if state is None:
            return

        try:
            await self._advance(message, state)
        except ReactionRoleException as exc:
            _log.debug('Setup step for user %s failed: %s', message.author.id, exc, exc_info=exc)
            await message.reply(str(exc))

    async def _advance(self, message: discord.Message, state: InterviewState) -> None:
        lowered = message.content.strip().lower()

        if lowered == QUIT_KEYWORD:
            if await self.registry.take(state):
                _log.info('User %s quit their setup', state.user_id)
                await message.reply('Setup terminated.')
            return

        if state.stage is InterviewStage.awaiting_content:
            if not message.content:
                raise UserInputError('The post needs some text. Enter the content of the post.')

            if await self.registry.set_content(state, message.content):
                _log.debug('Added post_content to the setup of user %s', state.user_id)
                await message.reply(PAIRING_INSTRUCTIONS)
            return

        if lowered == DONE_KEYWORD:
            return await self._complete(message, state)

        await self._add_reaction_role(message, state)

    async def _add_reaction_role(self, message: discord.Message, state: InterviewState) -> None:
        result = parse_reaction_role(message.content)
        if not result.ok:
            raise UserInputError(FORMAT_ERROR_MESSAGE)

        assert result.pair is not None
        pair = result.pair

        # Always fetched fresh, a role renamed mid setup is picked up right away
        guild = await resolve_guild(self.bot, state.guild_id)
        role_names = [role.name for role in await fetch_assignable_roles(guild)]
        if pair.role_name not in role_names:
            _log.debug('User %s supplied role_name %r but that didn\'t match a valid role', state.user_id, pair.role_name)
            raise UserInputError(f'Could not find that role. Valid role names are {human_join(role_names)}')

        if await self.registry.add_reaction_role(state, pair):
            _log.debug('Added %r to the setup of user %s', pair, state.user_id)
            await message.reply('Got it. Enter another, or \'done\' to finish')

    async def _resolve_channel(self, channel_id: int) -> discord.abc.Messageable:
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_id)
            except (discord.HTTPException, discord.InvalidData) as exc:
                _log.error('Could not retrieve the channel by id %s', channel_id, exc_info=exc)
                raise ResolveError('The channel reference could not be retrieved') from exc

        if not isinstance(channel, SUPPORTED_CHANNEL_TYPES):
            _log.error('Unsupported channel type %s for channel %s', type(channel).__name__, channel_id)
            raise ResolveError('The channel type was not recognized')

        return channel

    async def _complete(self, message: discord.Message, state: InterviewState) -> None:
        _log.debug('Processing \'done\' message from user %s', state.user_id)

        # Taken out before anything is posted so a second 'done' can't post twice.
        if not await self.registry.take(state):
            return

        if not state.reactions:
            await self.registry.restore(state)
            raise UserInputError('Add at least one emoji and role pair first, or send \'quit\' to stop.')

        if self.persist_before_post:
            try:
                await self.store.flush()
            except StorageError as exc:
                await self.registry.restore(state)
                raise StorageError(
                    'I couldn\'t save the setup, so nothing was posted. Send \'done\' to try again.', path=exc.path
                ) from exc

        channel = await self._resolve_channel(state.channel_id)

        assert state.post_content is not None
        try:
            posted = await channel.send(state.post_content)
        except discord.HTTPException as exc:
            raise PlatformActionError('I couldn\'t post the message in that channel.') from exc

        for pair in state.reactions:
            try:
                await posted.add_reaction(pair.emoji)
            except discord.HTTPException as exc:
                raise PlatformActionError(f'The post is up, but I couldn\'t add the {pair.emoji} reaction to it.') from exc

        monitor = Monitor(
            channel_id=state.channel_id,
            guild_id=state.guild_id,
            message_id=posted.id,
            reactions=tuple(state.reactions),
        )
        try:
            await self.store.append(monitor)
        except StorageError as exc:
            _log.error('Could not save the monitor for message %s', posted.id, exc_info=exc)
            raise StorageError('The post is up, but the setup may not have been saved.', path=exc.path) from exc

        _log.info('Successfully processed \'done\' message from user %s', state.user_id)
        await message.reply('All done! See the post in the channel.')
