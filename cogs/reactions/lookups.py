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

from typing import TYPE_CHECKING, List, Tuple

import discord

from utils import ResolveError

if TYPE_CHECKING:
    from bot import RolesBot

__all__: Tuple[str, ...] = ('resolve_guild', 'fetch_assignable_roles')


async def resolve_guild(bot: RolesBot, guild_id: int, /) -> discord.Guild:
    """|coro|

    Get a guild from the cache, falling back to the API.

    Raises
    ------
    ResolveError
        The guild could not be found.
    """
    guild = bot.get_guild(guild_id)
    if guild is not None:
        return guild

    try:
        return await bot.fetch_guild(guild_id)
    except discord.HTTPException as exc:
        raise ResolveError('Could not find your guild!') from exc


async def fetch_assignable_roles(guild: discord.Guild, /) -> List[discord.Role]:
    """|coro|

    Fetch the live roles of a guild from the API, leaving out ``@everyone``.

    Raises
    ------
    ResolveError
        The roles could not be fetched.
    """
    try:
        roles = await guild.fetch_roles()
    except discord.HTTPException as exc:
        raise ResolveError(f'Could not fetch the roles of {guild.name}.') from exc

    return [role for role in roles if not role.is_default()]
