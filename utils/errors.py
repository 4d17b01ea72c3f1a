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

from typing import Tuple

__all__: Tuple[str, ...] = (
    'ReactionRoleException',
    'UserInputError',
    'ResolveError',
    'StorageError',
    'PlatformActionError',
)


class ReactionRoleException(Exception):
    """The base exception all reaction role exceptions inherit from. The message
    of every exception is meant to be shown to the user as-is.
    """

    __slots__: Tuple[str, ...] = ()


class UserInputError(ReactionRoleException):
    """An exception raised when a user sends a message the interview can not use,
    such as a malformed pairing or an unknown role name. The interview stays where it was.

    This inherits :class:`ReactionRoleException`.
    """


class ResolveError(ReactionRoleException):
    """An exception raised when a guild, member, role or channel could not be resolved.

    This inherits :class:`ReactionRoleException`.
    """


class StorageError(ReactionRoleException):
    """An exception raised when the monitor store could not be read or written.

    This inherits :class:`ReactionRoleException`.

    Parameters
    ----------
    path: :class:`str`
        The path of the backing file.

    Attributes
    ----------
    path: :class:`str`
        The path of the backing file.
    """

    __slots__: Tuple[str, ...] = ('path',)

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path: str = path


class PlatformActionError(ReactionRoleException):
    """An exception raised when posting, reacting or granting a role fails at the Discord API.

    This inherits :class:`ReactionRoleException`.
    """
