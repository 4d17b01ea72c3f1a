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
import time
from typing import TYPE_CHECKING, Any, Callable, Coroutine, Optional, ParamSpec, Tuple, TypeAlias, TypeVar, Union

import discord
from discord.ext import commands
from typing_extensions import Concatenate, Self

from cogs.reactions.interview import InterviewRegistry
from cogs.reactions.monitors import MonitorStore
from utils import (
    COMMAND_PREFIX,
    MONITOR_STORE_PATH,
    RUNNING_DEVELOPMENT,
    Context,
    ErrorHandler,
    parse_initial_extensions,
)

if TYPE_CHECKING:
    import aiohttp

T = TypeVar("T")
P = ParamSpec("P")
DecoFunc: TypeAlias = Callable[Concatenate["RolesBot", P], Coroutine[T, Any, Any]]

_log = logging.getLogger(__name__)
if RUNNING_DEVELOPMENT:
    _log.setLevel(logging.DEBUG)

initial_extensions: Tuple[str, ...] = (
    "utils.error_handler",
    "cogs.reactions",
    "jishaku",
)


def wrap_extension(coro: DecoFunc[P, T]) -> DecoFunc[P, T]:
    """A method to wrap an extension coroutine in the Bot class. This will handle all
    logging and error handling.

    Parameters
    ----------
    coro: DecoFunc[P, T]
        The coroutine to wrap.

    Returns
    -------
    DecoFunc[P, T]
        A wrapped function that logs and handles errors.
    """

    async def wrapped(self: RolesBot, *args: P.args, **kwargs: P.kwargs) -> T:
        ext_name, *_ = args

        start = time.time()
        try:
            result = await coro(self, *args, **kwargs)
        except commands.ExtensionFailed as exc:
            raise exc.original from exc
        except Exception as exc:
            raise exc from None

        _log.info('Loaded the "%s" extension in %s seconds', ext_name, time.time() - start)
        return result

    return wrapped


class RolesBot(commands.Bot):
    """The bot instance. Owns the state shared between the reaction role cog's handlers:
    the store of monitored posts and the registry of in-progress setups.

    Parameters
    ----------
    session: :class:`aiohttp.ClientSession`
        A client session to use for generic requests.
    store_path: :class:`str`
        The path of the monitor store file.
    """

    if TYPE_CHECKING:
        user: discord.ClientUser  # This isn't accessed before the client has been logged in so it's OK to overwrite it.

    def __init__(self, *, session: aiohttp.ClientSession, store_path: str = MONITOR_STORE_PATH) -> None:
        self.session: aiohttp.ClientSession = session
        self.load_time = discord.utils.utcnow()

        self.error_handler: Optional[ErrorHandler] = None
        self.monitor_store: MonitorStore = MonitorStore(store_path)
        self.interviews: InterviewRegistry = InterviewRegistry()

        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True

        super().__init__(
            command_prefix=commands.when_mentioned_or(COMMAND_PREFIX),
            description="Setup posts whose reactions hand out roles",
            intents=intents,
            case_insensitive=True,
            allowed_mentions=discord.AllowedMentions.none(),
        )

    # Events
    async def on_ready(self) -> None:
        """|coro|

        Called when the client has hit READY. Please note this can be called more than once during the clients
        uptime.
        """
        _log.info("Bot connected as %s", self.user.name)

        total_guilds = len(self.guilds)
        _log.info("Connected to %s servers total.", total_guilds)

        invite = discord.utils.oauth_url(
            self.user.id,
            permissions=discord.Permissions(
                send_messages=True, add_reactions=True, read_message_history=True, manage_roles=True
            ),
        )
        _log.info("Invite link: %s", invite)

    async def get_context(
        self,
        origin: Union[discord.Message, discord.Interaction[Self]],
        /,
        *,
        cls: Any = Context,
    ) -> Any:
        return await super().get_context(origin, cls=cls)

    @wrap_extension
    async def load_extension(self, name: str, /, *, package: Optional[str] = None) -> None:
        return await super().load_extension(name, package=package)

    @wrap_extension
    async def reload_extension(self, name: str, /, *, package: Optional[str] = None) -> None:
        return await super().reload_extension(name, package=package)

    @wrap_extension
    async def unload_extension(self, name: str, /, *, package: Optional[str] = None) -> None:
        return await super().unload_extension(name, package=package)

    # Hooks
    async def setup_hook(self) -> None:
        # A store that exists but can't be read is fatal, the StorageError is left to stop startup.
        _log.debug("Loading monitor store from %s", self.monitor_store.path)
        await self.monitor_store.load()

        for ext in parse_initial_extensions(initial_extensions):
            await self.load_extension(ext)

        _log.debug("Finished loading extensions.")
