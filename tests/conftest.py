"""Shared fixtures and discord.py stand-ins for the reaction role tests."""

import sys
from pathlib import Path
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

# Add the repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cogs.reactions.interview import InterviewFlow, InterviewRegistry
from cogs.reactions.monitors import MonitorStore

GUILD_ID = 100
CHANNEL_ID = 200
MESSAGE_ID = 300
USER_ID = 400


def http_error(cls=discord.HTTPException, status: int = 500, text: str = "boom"):
    """Build a discord.py HTTP exception without a real response."""
    response = MagicMock()
    response.status = status
    response.reason = "error"
    return cls(response, text)


def make_role(name: str, *, default: bool = False) -> MagicMock:
    role = MagicMock(spec=discord.Role)
    role.name = name
    role.is_default.return_value = default
    return role


def make_guild(role_names: List[str], guild_id: int = GUILD_ID) -> MagicMock:
    guild = MagicMock(spec=discord.Guild)
    guild.id = guild_id
    guild.name = "Test Guild"
    roles = [make_role("@everyone", default=True)] + [make_role(name) for name in role_names]
    guild.fetch_roles = AsyncMock(return_value=roles)
    guild.get_member.return_value = None
    guild.fetch_member = AsyncMock()
    return guild


def make_dm(content: str, user_id: int = USER_ID, *, bot: bool = False) -> MagicMock:
    message = MagicMock()
    message.guild = None
    message.content = content
    message.author.id = user_id
    message.author.bot = bot
    message.reply = AsyncMock()
    return message


def make_ctx(user_id: int = USER_ID, channel_id: int = CHANNEL_ID, guild_id: int = GUILD_ID) -> MagicMock:
    ctx = MagicMock()
    ctx.author.id = user_id
    ctx.author.send = AsyncMock()
    ctx.channel.id = channel_id
    ctx.channel.mention = f"<#{channel_id}>"
    ctx.guild.id = guild_id
    ctx.reply = AsyncMock()
    return ctx


def replies(message: MagicMock) -> List[str]:
    return [call.args[0] for call in message.reply.await_args_list]


@pytest.fixture
def store(tmp_path) -> MonitorStore:
    return MonitorStore(str(tmp_path / "data.json"))


@pytest.fixture
def registry() -> InterviewRegistry:
    return InterviewRegistry()


@pytest.fixture
def guild() -> MagicMock:
    return make_guild(["Helper", "Moderator"])


@pytest.fixture
def posted() -> MagicMock:
    message = MagicMock(spec=discord.Message)
    message.id = MESSAGE_ID
    message.add_reaction = AsyncMock()
    return message


@pytest.fixture
def channel(posted) -> MagicMock:
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = CHANNEL_ID
    channel.send = AsyncMock(return_value=posted)
    return channel


@pytest.fixture
def bot(guild, channel) -> MagicMock:
    bot = MagicMock()
    bot.get_guild.return_value = guild
    bot.fetch_guild = AsyncMock(side_effect=http_error(discord.NotFound, 404))
    bot.get_channel.return_value = channel
    bot.fetch_channel = AsyncMock(side_effect=http_error(discord.NotFound, 404))
    return bot


@pytest.fixture
def make_flow(bot, registry, store):
    def factory(*, persist_before_post: bool = True, store_override: Optional[MonitorStore] = None) -> InterviewFlow:
        return InterviewFlow(
            bot,
            registry=registry,
            store=store if store_override is None else store_override,
            persist_before_post=persist_before_post,
        )

    return factory


@pytest.fixture
def flow(make_flow) -> InterviewFlow:
    return make_flow()
