"""Tests for the error handler and its packet manager."""

import gc
import weakref
from unittest.mock import AsyncMock, MagicMock

import pytest
from discord.ext import commands

from utils import ErrorHandler, ResolveError
from utils.error_handler import PacketManager


@pytest.fixture
def handler_bot(monkeypatch) -> MagicMock:
    monkeypatch.delenv("EXCEPTION_WEBHOOK_URL", raising=False)
    return MagicMock()


def make_command_ctx() -> MagicMock:
    ctx = MagicMock()
    ctx.reply = AsyncMock()
    ctx.send = AsyncMock()
    return ctx


class GrantFailed(Exception):
    pass


def raised(exc: BaseException) -> BaseException:
    try:
        raise exc
    except BaseException as caught:
        return caught


class TestPacketManager:
    """Test that reported errors are released and not held on to."""

    @pytest.mark.asyncio
    async def test_reported_errors_are_not_retained(self, handler_bot, monkeypatch):
        async def release(self, traceback_str, packet):
            pass

        monkeypatch.setattr(PacketManager, "_release_error", release)
        manager = PacketManager(handler_bot)

        refs = []
        for index in range(50):
            error = raised(GrantFailed(f"Could not give Helper to member {index}."))
            refs.append(weakref.ref(error))
            await manager.add_error(error=error, event_name="raw_reaction_add")
            del error

        gc.collect()
        assert all(ref() is None for ref in refs)

    @pytest.mark.asyncio
    async def test_release_logs_without_webhook(self, handler_bot, caplog):
        manager = PacketManager(handler_bot)

        with caplog.at_level("ERROR", logger="utils.error_handler"):
            await manager.add_error(error=raised(RuntimeError("boom")), event_name="raw_reaction_add")

        assert any(record.exc_info and record.exc_info[0] is RuntimeError for record in caplog.records)


class TestCommandErrors:
    """Test the replies to errors raised by commands."""

    @pytest.mark.asyncio
    async def test_reaction_role_error_replied_as_is(self, handler_bot):
        handler = ErrorHandler(handler_bot)
        ctx = make_command_ctx()

        await handler.handle_on_command_error(ctx, commands.CommandInvokeError(ResolveError("Could not find your guild!")))

        ctx.reply.assert_awaited_once_with("Could not find your guild!")

    @pytest.mark.asyncio
    async def test_guild_only_command_in_dms(self, handler_bot):
        handler = ErrorHandler(handler_bot)
        ctx = make_command_ctx()

        await handler.handle_on_command_error(ctx, commands.NoPrivateMessage())

        ctx.reply.assert_awaited_once_with("This command only works in a server channel, not in DMs.")

    @pytest.mark.asyncio
    async def test_unknown_command_ignored(self, handler_bot):
        handler = ErrorHandler(handler_bot)
        ctx = make_command_ctx()

        await handler.handle_on_command_error(ctx, commands.CommandNotFound())

        ctx.reply.assert_not_awaited()
        ctx.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_error_logged(self, handler_bot, monkeypatch):
        handler = ErrorHandler(handler_bot)
        log_error = AsyncMock()
        monkeypatch.setattr(handler, "log_error", log_error)
        ctx = make_command_ctx()
        error = RuntimeError("boom")

        await handler.handle_on_command_error(ctx, commands.CommandInvokeError(error))

        log_error.assert_awaited_once_with(error, target=ctx)
        ctx.reply.assert_not_awaited()
