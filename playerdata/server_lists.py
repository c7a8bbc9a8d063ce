"""Readers for the player lists a server keeps on disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from playerdata.utils import is_valid_uuid

logger = logging.getLogger(__name__)


def get_all_players(playerdata_dir: Path) -> list[str]:
    '''
    Returns the uuid of every <uuid>.dat file in the world's playerdata folder.
    Files named after usernames (pre-uuid servers) are skipped.
    '''
    playerdata_dir = Path(playerdata_dir)
    if not playerdata_dir.is_dir():
        logger.warning("Playerdata folder %s does not exist", playerdata_dir)
        return []
    uuids = [
        path.stem
        for path in playerdata_dir.glob("*.dat")
        if is_valid_uuid(path.stem)
    ]
    return sorted(uuids)


def _load_uuid_list(path: Optional[Path]) -> list[str]:
    if path is None:
        return []
    path = Path(path)
    if not path.exists():
        logger.warning("Player list %s does not exist", path)
        return []

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"{path} must be a list of player entries.")

    uuids = []
    for entry in raw:
        if isinstance(entry, dict) and entry.get("uuid"):
            uuids.append(str(entry["uuid"]))
    return uuids


def get_whitelisted_players(whitelist_path: Optional[Path]) -> list[str]:
    return _load_uuid_list(whitelist_path)


def get_banned_players(banlist_path: Optional[Path]) -> list[str]:
    return _load_uuid_list(banlist_path)
