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
import json
import logging
import os
from typing import Any, List, Sequence, Tuple

import aiofile

from utils import RUNNING_DEVELOPMENT, StorageError
from utils.types.reaction_role import MonitorPayload, ReactionRolePayload

__all__: Tuple[str, ...] = ('ReactionRole', 'Monitor', 'MonitorStore', 'normalize_emoji')

_log = logging.getLogger(__name__)
if RUNNING_DEVELOPMENT:
    _log.setLevel(logging.DEBUG)

VARIATION_SELECTOR_16: str = '\N{VARIATION SELECTOR-16}'


def normalize_emoji(emoji: str) -> str:
    """Returns a comparable form of a unicode emoji. Discord is not consistent about
    sending the emoji presentation selector, so ``❤`` and ``❤️`` compare equal.
    """
    return emoji.replace(VARIATION_SELECTOR_16, '')


@dataclasses.dataclass(frozen=True)
class ReactionRole:
    """A pairing of a unicode emoji and the name of the role it grants.

    Attributes
    ----------
    emoji: :class:`str`
        The emoji, a single grapheme.
    role_name: :class:`str`
        The exact name of the role to grant.
    """

    emoji: str
    role_name: str

    def matches(self, emoji: str) -> bool:
        return normalize_emoji(self.emoji) == normalize_emoji(emoji)

    def to_dict(self) -> ReactionRolePayload:
        return {'emoji': self.emoji, 'role_name': self.role_name}

    @classmethod
    def from_dict(cls, data: ReactionRolePayload) -> ReactionRole:
        return cls(emoji=str(data['emoji']), role_name=str(data['role_name']))


@dataclasses.dataclass(frozen=True)
class Monitor:
    """Represents a posted message whose reactions grant roles.

    Attributes
    ----------
    channel_id: :class:`int`
        The channel the message was posted in.
    guild_id: :class:`int`
        The guild of the channel.
    message_id: :class:`int`
        The posted message.
    reactions: Tuple[:class:`ReactionRole`, ...]
        The pairs, in the order they were added to the message.
    """

    channel_id: int
    guild_id: int
    message_id: int
    reactions: Tuple[ReactionRole, ...]

    def is_for(self, channel_id: int, message_id: int) -> bool:
        return self.channel_id == channel_id and self.message_id == message_id

    def to_dict(self) -> MonitorPayload:
        return {
            'channel_id': self.channel_id,
            'guild_id': self.guild_id,
            'message_id': self.message_id,
            'reactions': [reaction.to_dict() for reaction in self.reactions],
        }

    @classmethod
    def from_dict(cls, data: MonitorPayload) -> Monitor:
        return cls(
            channel_id=int(data['channel_id']),
            guild_id=int(data['guild_id']),
            message_id=int(data['message_id']),
            reactions=tuple(ReactionRole.from_dict(entry) for entry in data['reactions']),
        )


class MonitorStore:
    """The durable list of every monitor the bot watches. The list is read in full
    once on startup and rewritten in full whenever it changes.

    Every read and write goes through :attr:`lock` so a reaction never observes
    a half applied change and two setups finishing together can not lose one another.

    Parameters
    ----------
    path: :class:`str`
        The path of the backing JSON file.

    Attributes
    ----------
    path: :class:`str`
        The path of the backing JSON file.
    lock: :class:`asyncio.Lock`
        The lock guarding the in-memory list and the file.
    """

    __slots__: Tuple[str, ...] = ('path', 'lock', '_monitors')

    def __init__(self, path: str) -> None:
        self.path: str = path
        self.lock: asyncio.Lock = asyncio.Lock()
        self._monitors: List[Monitor] = []

    def __repr__(self) -> str:
        return f'<MonitorStore path={self.path!r} monitors={len(self._monitors)}>'

    def __len__(self) -> int:
        return len(self._monitors)

    async def load(self) -> List[Monitor]:
        """|coro|

        Read the backing file and replace the in-memory list with its contents.

        Returns
        -------
        List[:class:`Monitor`]
            The loaded monitors. Empty when the file does not exist.

        Raises
        ------
        StorageError
            The file exists but could not be read or parsed.
        """
        async with self.lock:
            if not os.path.exists(self.path):
                _log.info('No monitor store found at %s, starting empty.', self.path)
                self._monitors = []
                return []

            try:
                async with aiofile.async_open(self.path, 'r', encoding='utf-8') as f:
                    raw = await f.read()
            except (OSError, UnicodeDecodeError) as exc:
                raise StorageError(f'Could not read the monitor store at {self.path}.', path=self.path) from exc

            try:
                data: Any = json.loads(raw)
                if not isinstance(data, list):
                    raise TypeError(f'expected a list of monitors, got {type(data).__name__}')

                monitors = [Monitor.from_dict(entry) for entry in data]
            except (ValueError, KeyError, TypeError) as exc:
                raise StorageError(f'The monitor store at {self.path} is not valid.', path=self.path) from exc

            self._monitors = monitors
            _log.info('Loaded %s monitors from %s', len(monitors), self.path)
            return list(monitors)

    async def _write(self, monitors: Sequence[Monitor]) -> None:
        # Caller holds the lock. Written next to the target then swapped in
        # so a crash mid-write never leaves a truncated store.
        content = json.dumps([monitor.to_dict() for monitor in monitors], indent=4, ensure_ascii=False)
        tmp_path = f'{self.path}.tmp'

        try:
            async with aiofile.async_open(tmp_path, 'w', encoding='utf-8') as f:
                await f.write(content)

            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StorageError(f'Could not write the monitor store at {self.path}.', path=self.path) from exc

        _log.debug('Wrote %s monitors to %s', len(monitors), self.path)

    async def save(self, monitors: Sequence[Monitor]) -> None:
        """|coro|

        Overwrite the backing file with ``monitors`` and make them the in-memory list.
        The complete collection must be passed every time.

        Raises
        ------
        StorageError
            The file could not be written. The in-memory list is left untouched.
        """
        async with self.lock:
            await self._write(monitors)
            self._monitors = list(monitors)

    async def flush(self) -> None:
        """|coro|

        Rewrite the backing file with the current in-memory list. Used to prove the
        store is writable before anything is posted.

        Raises
        ------
        StorageError
            The file could not be written.
        """
        async with self.lock:
            await self._write(self._monitors)

    async def append(self, monitor: Monitor) -> None:
        """|coro|

        Add a monitor and persist the whole store. The new monitor only becomes
        visible to reactions once the write succeeded.

        Raises
        ------
        StorageError
            The file could not be written.
        """
        async with self.lock:
            updated = [*self._monitors, monitor]
            await self._write(updated)
            self._monitors = updated

        _log.info(
            'Now monitoring message %s in channel %s (guild %s) with %s reactions',
            monitor.message_id,
            monitor.channel_id,
            monitor.guild_id,
            len(monitor.reactions),
        )

    async def all(self) -> List[Monitor]:
        async with self.lock:
            return list(self._monitors)

    async def find(self, channel_id: int, message_id: int, emoji: str) -> List[ReactionRole]:
        """|coro|

        Find the pairs matching a reaction on the given message.

        Parameters
        ----------
        channel_id: :class:`int`
            The channel the reaction happened in.
        message_id: :class:`int`
            The message that was reacted to.
        emoji: :class:`str`
            The unicode emoji of the reaction.

        Returns
        -------
        List[:class:`ReactionRole`]
            Every matching pair, in monitor then insertion order.
        """
        async with self.lock:
            return [
                reaction
                for monitor in self._monitors
                if monitor.is_for(channel_id, message_id)
                for reaction in monitor.reactions
                if reaction.matches(emoji)
            ]
