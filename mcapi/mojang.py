import asyncio
import logging
from string import Template
from typing import Optional

import aiohttp

from playerdata.errors import NameLookupError
from playerdata.utils import short_uuid

logger = logging.getLogger(__name__)

'''
Default configuration values.
These can be modified as needed.
'''
defaults = {
    "timeout": 30,                         #Seconds before an outbound request is abandoned.
    "success_delay_multiplier": 1,         #Lock is held for ratelimit * this after a successful request.
    "failure_delay_multiplier": 3,         #Lock is held for ratelimit * this after a failed request, to back off.
    "headers": {
        'user-agent': 'playerkeeper/0.1 (+name history lookup)',
        'accept': 'application/json',
    },
}

'''
API endpoints used to resolve player identities. The keys are used to identify the endpoint when calling endpoint_url().
'''
endpoints = {
    "name_history":
                    {
                    "endpoint": "https://api.mojang.com/user/profiles/$uuid/names",
                    "method": "GET"
                    },
}


## <------------------------------------- Admission control -------------------------------------> ##

class RateLimiter:
    """Process-wide admission gate for outbound name history requests.

    One lock covers every player: the upstream quota is per client, not per
    profile. A caller acquires the gate, performs its single request, then
    hands the gate to ``release_after`` which keeps it closed for a cool-down
    before the next waiter is let through. Waiters queue on the lock in FIFO
    order instead of polling.

    A ``ratelimit`` of 0 disables the gate entirely.
    """

    def __init__(self, ratelimit: float = 0):
        if ratelimit < 0:
            raise ValueError("ratelimit must be >= 0")
        self.ratelimit = ratelimit
        self._lock = asyncio.Lock()
        self._release_handle: Optional[asyncio.TimerHandle] = None

    @property
    def enabled(self) -> bool:
        return self.ratelimit > 0

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    async def acquire(self) -> None:
        if not self.enabled:
            return
        await self._lock.acquire()

    def release_after(self, multiplier: float) -> None:
        """Schedule the gate to reopen after ``ratelimit * multiplier`` seconds."""
        if not self.enabled:
            return
        loop = asyncio.get_running_loop()
        self._release_handle = loop.call_later(self.ratelimit * multiplier, self._release)

    def _release(self) -> None:
        self._release_handle = None
        if self._lock.locked():
            self._lock.release()


## <------------------------------------- Name history -------------------------------------> ##

def sort_name_history(history: list[dict]) -> list[dict]:
    '''
    Returns name history entries newest first.
    The service does not guarantee any order. Entries without changedToAt
    (the account's original name) count as 0 and therefore sort last.
    '''
    return sorted(history, key=lambda entry: entry.get("changedToAt") or 0, reverse=True)


def endpoint_url(endpoint_name: str, **values) -> str:
    return Template(endpoints[endpoint_name]["endpoint"]).substitute(**values)


class NameHistoryClient:
    """Fetches a player's past usernames, one request at a time through a shared RateLimiter."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        rate_limiter: RateLimiter,
        timeout: float = defaults["timeout"],
        headers: dict = defaults["headers"],
    ):
        self.session = session
        self.rate_limiter = rate_limiter
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = headers

    async def _request_json(self, url: str):
        async with self.session.get(url, timeout=self.timeout, headers=self.headers) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def fetch_name_history(self, uuid: str) -> list[dict]:
        '''
        Fetches the name history for a player, sorted newest first.
        Failures are not retried here; the gate is held for the longer back-off
        before the error is raised so other players are slowed down too.

        :param uuid: Player uuid, with or without dashes.
        :raises NameLookupError: on timeout, a non-2xx status, a network error or an unexpected payload.
        '''
        url = endpoint_url("name_history", uuid=short_uuid(uuid))
        await self.rate_limiter.acquire()
        logger.info("REQUEST %s", url)
        try:
            history = await self._request_json(url)
            if not isinstance(history, list) or not all(isinstance(entry, dict) for entry in history):
                raise ValueError(f"expected a list of objects, got {type(history).__name__}")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("REQUEST %s failed: %s", url, e)
            self.rate_limiter.release_after(defaults["failure_delay_multiplier"])
            raise NameLookupError(uuid, str(e) or type(e).__name__) from e
        except BaseException:
            # Cancelled mid-request: still reopen the gate.
            self.rate_limiter.release_after(defaults["failure_delay_multiplier"])
            raise

        self.rate_limiter.release_after(defaults["success_delay_multiplier"])
        return sort_name_history(history)
