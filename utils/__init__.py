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

import os
from typing import Any, Iterable, List, Optional, Tuple

from .cog import *
from .context import *
from .error_handler import *
from .errors import *
from .types import *

__all__: Tuple[str, ...] = (
    'RUNNING_DEVELOPMENT',
    'PERSIST_BEFORE_POST',
    'COMMAND_PREFIX',
    'MONITOR_STORE_PATH',
    'LOG_LEVEL',
    'parse_initial_extensions',
    'human_join',
)


def _parse_environ_boolean(key: str, *, false_if_none: bool = False) -> bool:
    val = os.environ.get(key)
    if val is None:
        if false_if_none:
            return False

        return True

    return val.lower() in ("true", "1")


RUNNING_DEVELOPMENT: bool = _parse_environ_boolean('RUN_DEVELOPMENT', false_if_none=True)

# When enabled, the store is rewritten before the post goes out so a broken
# backing file aborts the setup instead of leaving an unrecorded post behind.
PERSIST_BEFORE_POST: bool = _parse_environ_boolean('PERSIST_BEFORE_POST')

COMMAND_PREFIX: str = os.environ.get('COMMAND_PREFIX', '!rfr ')
MONITOR_STORE_PATH: str = os.environ.get('MONITOR_STORE_PATH', 'data.json')
LOG_LEVEL: str = os.environ.get('LOG_LEVEL', 'INFO').upper()

IGNORE_EXTENSIONS: List[str] = [e.strip() for e in os.environ.get('IGNORE_EXTENSIONS', '').split(',') if e.strip()]


def parse_initial_extensions(extensions: Iterable[str]) -> Iterable[str]:
    if RUNNING_DEVELOPMENT:
        # When running development, the user can list extensions they'd like to skip
        # in the `.env` file: `IGNORE_EXTENSIONS=ext1,ext2`
        return tuple(ext for ext in extensions if ext not in IGNORE_EXTENSIONS)

    return extensions


def human_join(
    iterable: Iterable[Any], /, *, last: str = 'and', delimiter: str = ',', additional: Optional[str] = None
) -> str:
    """Joins an iterable of strings into a human readable string.

    Parameters
    ----------
    iterable: Iterable[:class:`str`]
        The iterable of strings to join.
    last: :class:`str`
        The word to use to join the last two items.
    delimiter: :class:`str`
        The delimiter to use to join all other items.

    Returns
    -------
    :class:`str`
        The human readable string.
    """
    items = [str(item) for item in iterable]

    finished: str
    if len(items) == 0:
        finished = ''
    elif len(items) == 1:
        finished = items[0]
    elif len(items) == 2:
        finished = f'{items[0]} {last} {items[1]}'
    else:
        finished = f'{f"{delimiter} ".join(items[:-1])}{delimiter} {last} {items[-1]}'

    if additional:
        finished += f' {additional}'

    return finished.strip()
