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
import logging
import os

import dotenv

dotenv.load_dotenv()

import aiohttp
import discord

from bot import RolesBot
from utils import LOG_LEVEL

_log = logging.getLogger(__name__)

os.environ['JISHAKU_NO_UNDERSCORE'] = 'true'
os.environ['JISHAKU_NO_DM_TRACEBACK'] = 'true'
os.environ['JISHAKU_RETAIN'] = 'true'


async def main() -> None:
    discord.utils.setup_logging(level=getattr(logging, LOG_LEVEL, logging.INFO), root=True)

    token = os.environ.get('TOKEN')
    if not token:
        return _log.error('Missing TOKEN environment variable.')

    async with aiohttp.ClientSession() as session:
        try:
            bot = RolesBot(session=session)
        except Exception as exc:
            return _log.warning('Failed to create an instance of RolesBot.', exc_info=exc)

        async with bot:
            try:
                await bot.start(token)
            except Exception as exc:
                return _log.warning('Failed to start client.', exc_info=exc)


if __name__ == '__main__':
    asyncio.run(main())
