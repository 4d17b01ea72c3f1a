"""Tests for the reaction roles cog listeners."""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from conftest import make_dm

from cogs.reactions import ReactionRoles
from utils import ResolveError


@pytest.fixture
def cog(bot) -> ReactionRoles:
    bot.error_handler = MagicMock()
    bot.error_handler.log_error = AsyncMock()

    cog = ReactionRoles(bot)
    cog.interviews = MagicMock()
    cog.interviews.handle_message = AsyncMock()
    cog.resolver = MagicMock()
    cog.resolver.handle_reaction = AsyncMock(return_value=[])
    return cog


def command_ctx(valid: bool) -> MagicMock:
    ctx = MagicMock()
    ctx.valid = valid
    return ctx


class TestInterviewListener:
    """Test which messages reach the setup interview."""

    @pytest.mark.asyncio
    async def test_private_message_forwarded(self, cog, bot):
        bot.get_context = AsyncMock(return_value=command_ctx(False))
        message = make_dm("Pick your role!")

        await cog.interview_listener(message)

        cog.interviews.handle_message.assert_awaited_once_with(message)

    @pytest.mark.asyncio
    async def test_private_command_skipped(self, cog, bot):
        bot.get_context = AsyncMock(return_value=command_ctx(True))

        await cog.interview_listener(make_dm("!rfr help"))

        cog.interviews.handle_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_guild_message_skipped(self, cog, bot):
        bot.get_context = AsyncMock(return_value=command_ctx(False))
        message = make_dm("Pick your role!")
        message.guild = MagicMock()

        await cog.interview_listener(message)

        bot.get_context.assert_not_awaited()
        cog.interviews.handle_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bot_message_skipped(self, cog, bot):
        bot.get_context = AsyncMock(return_value=command_ctx(False))

        await cog.interview_listener(make_dm("Pick your role!", bot=True))

        cog.interviews.handle_message.assert_not_awaited()


class TestReactionListener:
    """Test how failures while granting roles are reported."""

    @pytest.mark.asyncio
    async def test_failure_sent_to_error_handler(self, cog, bot):
        error = ResolveError("Could not find your guild!")
        cog.resolver.handle_reaction.side_effect = error
        payload = MagicMock(spec=discord.RawReactionActionEvent)

        await cog.reaction_listener(payload)

        bot.error_handler.log_error.assert_awaited_once_with(error, event_name="raw_reaction_add")

    @pytest.mark.asyncio
    async def test_failure_logged_without_error_handler(self, cog, bot, caplog):
        bot.error_handler = None
        cog.resolver.handle_reaction.side_effect = ResolveError("Could not find your guild!")
        payload = MagicMock(spec=discord.RawReactionActionEvent)
        payload.message_id = 300

        with caplog.at_level("ERROR", logger="cogs.reactions"):
            await cog.reaction_listener(payload)

        assert "Failed to handle reaction on message 300" in caplog.text

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self, cog, bot):
        cog.resolver.handle_reaction.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await cog.reaction_listener(MagicMock(spec=discord.RawReactionActionEvent))

        bot.error_handler.log_error.assert_not_awaited()
