import asyncio
import logging
import uuid as uuidlib
from pathlib import Path

import aiohttp

from playerdata.errors import AssetError
from playerdata.utils import short_uuid

logger = logging.getLogger(__name__)

AVATAR_URL = "https://crafatar.com/avatars/"
BODY_URL = "https://crafatar.com/renders/body/"
SKIN_URL = "https://crafatar.com/skins/"

AVATAR_FILENAME = "avatar.png"
BODY_FILENAME = "body.png"
SKIN_FILENAME = "skin.png"

# Both must be on disk for a player's assets to count as present.
REQUIRED_ASSET_FILENAMES = (AVATAR_FILENAME, BODY_FILENAME)

DOWNLOAD_TIMEOUT = 30


def default_skin(uuid: str) -> str:
    '''
    Returns the default model the game would show for this uuid, "Alex" (slim) or "Steve".
    Mirrors Java's UUID.hashCode() & 1.
    '''
    value = uuidlib.UUID(hex=short_uuid(uuid)).int
    hilo = (value >> 64) ^ (value & 0xFFFFFFFFFFFFFFFF)
    hash_code = (hilo >> 32) ^ (hilo & 0xFFFFFFFF)
    return "Alex" if hash_code & 1 else "Steve"


def asset_urls(uuid: str) -> dict[str, str]:
    """Filename -> download url for the three images of one player."""
    uuid_short = short_uuid(uuid)
    fallback = f"default=MHF_{default_skin(uuid)}"
    return {
        AVATAR_FILENAME: f"{AVATAR_URL}{uuid_short}?size=64&overlay&{fallback}",
        BODY_FILENAME: f"{BODY_URL}{uuid_short}?size=128&overlay&{fallback}",
        SKIN_FILENAME: f"{SKIN_URL}{uuid_short}?{fallback}",
    }


def assets_present(playerpath: Path) -> bool:
    return all((Path(playerpath) / filename).exists() for filename in REQUIRED_ASSET_FILENAMES)


async def download_image(session: aiohttp.ClientSession, url: str, filepath: Path) -> Path:
    filepath = Path(filepath)
    timeout = aiohttp.ClientTimeout(total=DOWNLOAD_TIMEOUT)
    try:
        async with session.get(url, timeout=timeout) as response:
            response.raise_for_status()
            content = await response.read()
        await asyncio.to_thread(filepath.write_bytes, content)
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
        raise AssetError(f"{url} -> {filepath}: {e}") from e
    return filepath.resolve()


class AssetFetcher:
    """Downloads avatar, body render and skin images. Best effort: failures are only logged."""

    def __init__(self, session: aiohttp.ClientSession):
        self.session = session

    async def _fetch_one(self, url: str, filepath: Path) -> bool:
        try:
            await download_image(self.session, url, filepath)
        except AssetError as e:
            logger.error("ASSETS %s", e)
            return False
        return True

    async def fetch_assets(self, uuid: str, playerpath: Path) -> int:
        '''
        Downloads all three images for a player into playerpath, creating it if needed.
        Downloads run concurrently and independently of each other.

        :return: Number of images written.
        '''
        playerpath = Path(playerpath)
        try:
            await asyncio.to_thread(playerpath.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            logger.error("ASSETS could not create %s: %s", playerpath, e)
            return 0

        results = await asyncio.gather(
            *(
                self._fetch_one(url, playerpath / filename)
                for filename, url in asset_urls(uuid).items()
            )
        )
        return sum(results)
