"""Small shared helpers for uuids and JSON files."""

from __future__ import annotations

import asyncio
import json
import re
import time
from pathlib import Path
from typing import Any

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_uuid(value) -> bool:
    """Return True for a dashed uuid with version 1-5 and an RFC 4122 variant."""
    if not isinstance(value, str):
        return False
    # fullmatch so a trailing newline is not accepted by ``$``
    return UUID_PATTERN.fullmatch(value) is not None


def short_uuid(uuid: str) -> str:
    return uuid.replace("-", "")


def now_ms() -> int:
    return int(time.time() * 1000)


def _load_json_file(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _dump_json_file(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


async def read_json(path: Path) -> Any:
    """Read and parse a JSON file without blocking the event loop.

    Raises FileNotFoundError when the file is missing and ValueError
    (json.JSONDecodeError) when it is not valid JSON.
    """
    return await asyncio.to_thread(_load_json_file, Path(path))


async def write_json(path: Path, data: Any) -> None:
    await asyncio.to_thread(_dump_json_file, Path(path), data)
