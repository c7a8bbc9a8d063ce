"""Reads the fields we need out of gzip-compressed NBT save files."""

from __future__ import annotations

import asyncio
import logging
import struct
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import nbtlib

from playerdata.errors import DecodeError, NotFoundError

logger = logging.getLogger(__name__)

TICKS_PER_SECOND = 20

WORLD_TIME_PATH = ("Data", "Time")
FIRST_PLAYED_PATH = ("bukkit", "firstPlayed")
LAST_PLAYED_PATH = ("bukkit", "lastPlayed")
# Written by Spigot as a single root key, the dot is part of the name.
TICKS_LIVED_PATH = ("Spigot.ticksLived",)

_DECODE_ERRORS = (OSError, EOFError, ValueError, KeyError, IndexError, TypeError, struct.error, zlib.error)


@dataclass(frozen=True)
class PlayerState:
    time_start: int
    time_last: int
    time_lived: Optional[int] = None


def ticks_to_seconds(ticks: int) -> int:
    return int(ticks) // TICKS_PER_SECOND


def _select(root, path: tuple[str, ...]):
    """Walk ``path`` through nested compounds, None as soon as a step is missing."""
    node = root
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def _require_int(root, path: tuple[str, ...], source: Path) -> int:
    value = _select(root, path)
    if value is None:
        raise DecodeError(source, f"missing field {'.'.join(path)}")
    if not isinstance(value, int):
        raise DecodeError(source, f"field {'.'.join(path)} is not an integer")
    return int(value)


def _optional_int(root, path: tuple[str, ...], source: Path) -> Optional[int]:
    if _select(root, path) is None:
        return None
    return _require_int(root, path, source)


def load_nbt(path: Path):
    '''
    Decodes one NBT file. Blocking, use the async readers from the event loop.

    :raises NotFoundError: if the file does not exist.
    :raises DecodeError: if the file is not a readable NBT document.
    '''
    path = Path(path)
    if not path.is_file():
        raise NotFoundError(path)
    try:
        nbt_file = nbtlib.load(path)
    except FileNotFoundError as e:
        raise NotFoundError(path) from e
    except _DECODE_ERRORS as e:
        raise DecodeError(path, f"{type(e).__name__}: {e}") from e
    logger.info("READ %s", path)
    return nbt_file


def parse_world_time(root, source: Path) -> int:
    return ticks_to_seconds(_require_int(root, WORLD_TIME_PATH, source))


def parse_player_state(root, source: Path) -> PlayerState:
    ticks_lived = _optional_int(root, TICKS_LIVED_PATH, source)
    return PlayerState(
        time_start=_require_int(root, FIRST_PLAYED_PATH, source),
        time_last=_require_int(root, LAST_PLAYED_PATH, source),
        time_lived=None if ticks_lived is None else ticks_to_seconds(ticks_lived),
    )


def _read_world_time(level_path: Path) -> int:
    return parse_world_time(load_nbt(level_path), Path(level_path))


def _read_player_state(path: Path) -> PlayerState:
    return parse_player_state(load_nbt(path), Path(path))


async def read_world_time(level_path: Path) -> int:
    """Seconds elapsed in the world, from ``Data.Time`` in level.dat."""
    return await asyncio.to_thread(_read_world_time, level_path)


async def read_player_state(path: Path) -> PlayerState:
    """First/last played timestamps (ms) and optional seconds lived from ``<uuid>.dat``."""
    try:
        return await asyncio.to_thread(_read_player_state, path)
    except (DecodeError, NotFoundError) as e:
        logger.warning("READ %s failed: %s", path, e)
        raise
