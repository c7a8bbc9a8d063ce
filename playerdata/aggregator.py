"""Builds, caches and refreshes per-player snapshots.

For one uuid the pipeline runs strictly in order:

1. cache check  - ``<output>/<uuid_short>/stats.json`` short-circuits the build
2. build        - stats, advancements, binary player state, name history
3. asset check  - images are downloaded unless avatar and body are on disk
4. finalize     - the caller's ban flag is applied and the cache is written

Different players may be aggregated concurrently; they only share the
RateLimiter inside the NameHistoryClient.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from mcapi.crafatar import AssetFetcher, assets_present
from mcapi.mojang import NameHistoryClient
from playerdata import nbt_reader
from playerdata.config import AppConfig
from playerdata.errors import AggregationError, DecodeError, NameLookupError, NotFoundError
from playerdata.snapshot import PlayerSnapshot
from playerdata.stats import merge_stats
from playerdata.utils import is_valid_uuid, now_ms, read_json, short_uuid, write_json

logger = logging.getLogger(__name__)

CACHE_FILENAME = "stats.json"


class PlayerAggregator:
    def __init__(
        self,
        config: AppConfig,
        name_history_client: NameHistoryClient,
        asset_fetcher: AssetFetcher,
    ):
        self.config = config
        self.name_history_client = name_history_client
        self.asset_fetcher = asset_fetcher

    def player_path(self, uuid: str) -> Path:
        return self.config.output / short_uuid(uuid)

    def cache_path(self, uuid: str) -> Path:
        return self.player_path(uuid) / CACHE_FILENAME

    async def _read_optional_json(self, directory: Optional[Path], uuid: str):
        """Parsed ``<directory>/<uuid>.json``, or None when unconfigured, missing or corrupt."""
        if directory is None:
            return None
        path = directory / f"{uuid}.json"
        try:
            data = await read_json(path)
        except (OSError, ValueError) as e:
            logger.warning("READ %s failed: %s", path, e)
            return None
        logger.info("READ %s", path)
        return data

    async def load_cached(self, uuid: str) -> Optional[PlayerSnapshot]:
        path = self.cache_path(uuid)
        if not path.exists():
            return None
        try:
            snapshot = PlayerSnapshot.from_dict(await read_json(path))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable cache %s: %s", path, e)
            return None
        logger.debug("Cache hit for %s", uuid)
        return snapshot

    async def build_snapshot(self, uuid: str, banned: bool) -> PlayerSnapshot:
        stats_source = await self._read_optional_json(self.config.stats, uuid)
        stats = merge_stats(stats_source) if stats_source is not None else None
        advancements = await self._read_optional_json(self.config.advancements, uuid)

        datafile = self.config.playerdata / f"{uuid}.dat"
        try:
            state = await nbt_reader.read_player_state(datafile)
        except (DecodeError, NotFoundError) as e:
            raise AggregationError(uuid, "state", str(e)) from e

        try:
            history = await self.name_history_client.fetch_name_history(uuid)
        except NameLookupError as e:
            raise AggregationError(uuid, "identity", str(e)) from e
        if not history or not history[0].get("name"):
            raise AggregationError(uuid, "identity", "name history is empty")

        return PlayerSnapshot(
            uuid=uuid,
            uuid_short=short_uuid(uuid),
            playername=history[0]["name"],
            names=tuple(history),
            time_start=state.time_start,
            time_last=state.time_last,
            time_lived=state.time_lived,
            last_update=now_ms(),
            banned=banned,
            stats=stats,
            stats_source=stats_source,
            advancements=advancements,
        )

    async def create_player_data(self, uuid: str, banned: bool = False) -> PlayerSnapshot:
        '''
        Returns the snapshot for one player, building and caching it on first use.

        :param uuid: Dashed player uuid, in either case. Save files and cache folders use lower case.
        :param banned: Ban flag from the server's ban list. Always overrides the cached value.
        :raises AggregationError: if the uuid is invalid, the player's save file or
            name history can't be obtained, or the cache can't be written. Asset failures never raise.
        '''
        if not is_valid_uuid(uuid):
            raise AggregationError(str(uuid), "validate", "not a valid player uuid")
        uuid = uuid.lower()

        snapshot = await self.load_cached(uuid)
        if snapshot is None:
            snapshot = await self.build_snapshot(uuid, banned)

        playerpath = self.player_path(uuid)
        if not assets_present(playerpath):
            await self.asset_fetcher.fetch_assets(uuid, playerpath)

        snapshot = snapshot.with_banned(banned)
        cache_path = self.cache_path(uuid)
        try:
            await write_json(cache_path, snapshot.to_dict())
        except OSError as e:
            raise AggregationError(uuid, "cache", f"could not write {cache_path}: {e}") from e
        return snapshot
