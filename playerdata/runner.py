"""Batch runtime: aggregates every selected player and writes the player index.

Players are processed concurrently on one event loop. They share one
aiohttp session and one RateLimiter, so name history requests still go out
one at a time.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

import aiohttp

from mcapi.crafatar import AssetFetcher
from mcapi.mojang import NameHistoryClient, RateLimiter
from playerdata import nbt_reader
from playerdata.aggregator import PlayerAggregator
from playerdata.config import AppConfig
from playerdata.errors import AggregationError, DecodeError, NotFoundError
from playerdata.server_lists import get_all_players, get_banned_players, get_whitelisted_players
from playerdata.snapshot import PlayerSnapshot
from playerdata.utils import now_ms, write_json

logger = logging.getLogger(__name__)

INDEX_FILENAME = "players.json"


@dataclass
class RunSummary:
    world_time: Optional[int] = None
    snapshots: list = field(default_factory=list)
    failures: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def select_players(config: AppConfig, uuids: Optional[Iterable[str]] = None, whitelist_only: bool = False) -> list[str]:
    """Explicit uuids win, then the whitelist when asked for, else every player with a save file."""
    if uuids:
        return list(dict.fromkeys(uuids))
    if whitelist_only:
        return get_whitelisted_players(config.whitelist)
    return get_all_players(config.playerdata)


def build_index(world_time: Optional[int], snapshots: Iterable[PlayerSnapshot]) -> dict:
    players = sorted(snapshots, key=lambda snapshot: snapshot.time_last, reverse=True)
    return {
        "world_time": world_time,
        "lastUpdate": now_ms(),
        "players": [
            {
                "uuid": snapshot.uuid,
                "playername": snapshot.playername,
                "time_last": snapshot.time_last,
                "banned": snapshot.banned,
            }
            for snapshot in players
        ],
    }


async def _aggregate_one(aggregator: PlayerAggregator, uuid: str, banned: bool, summary: RunSummary) -> None:
    try:
        snapshot = await aggregator.create_player_data(uuid, banned=banned)
    except AggregationError as e:
        logger.error("Could not aggregate %s at stage %s: %s", e.uuid, e.stage, e)
        summary.failures[uuid] = e.stage
        return
    except Exception:
        # Anything else is a bug or an environment problem for this player only.
        logger.exception("Unexpected error while aggregating %s", uuid)
        summary.failures[uuid] = "unexpected"
        return
    summary.snapshots.append(snapshot)


async def run(config: AppConfig, uuids: Optional[Iterable[str]] = None, whitelist_only: bool = False) -> RunSummary:
    '''
    Aggregates the selected players and writes <output>/players.json.
    A failing player is logged and recorded in the summary; it never stops the batch.
    '''
    summary = RunSummary()
    try:
        summary.world_time = await nbt_reader.read_world_time(config.level)
    except (DecodeError, NotFoundError) as e:
        logger.warning("Could not read world time: %s", e)

    players = select_players(config, uuids=uuids, whitelist_only=whitelist_only)
    banned = {uuid.lower() for uuid in get_banned_players(config.banned_players)}
    logger.info("Aggregating %d players (%d banned)", len(players), sum(uuid.lower() in banned for uuid in players))

    rate_limiter = RateLimiter(config.ratelimit)
    async with aiohttp.ClientSession() as session:
        aggregator = PlayerAggregator(
            config,
            NameHistoryClient(session, rate_limiter),
            AssetFetcher(session),
        )
        await asyncio.gather(
            *(_aggregate_one(aggregator, uuid, uuid.lower() in banned, summary) for uuid in players)
        )

    await write_json(config.output / INDEX_FILENAME, build_index(summary.world_time, summary.snapshots))
    logger.info(
        "Finished: %d aggregated, %d failed",
        len(summary.snapshots),
        len(summary.failures),
    )
    return summary
