import time
from typing import Callable, List, Optional, Tuple

from cachetools import TLRUCache

from libs.result import Result, Return
from src.app.services.cache import ICache

DEFAULT_MAX_ENTRIES = 10_000


def _expires_at(key: str, entry: Tuple[str, int], now: float) -> float:
    _, ttl_seconds = entry
    return now + ttl_seconds


class InMemoryCache(ICache):
    """
    Process-local cache, used when CACHE_BACKEND is "memory" and in tests.

    Each entry keeps its own TTL; expired entries are evicted on every write
    and the least recently used entry goes once max_entries is reached.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries = TLRUCache(maxsize=max_entries, ttu=_expires_at, timer=clock)

    async def get(self, key: str) -> Result[Optional[str]]:
        entry = self._entries.get(key)
        if entry is None:
            return Return.ok(None)
        value, _ = entry
        return Return.ok(value)

    async def set(self, key: str, value: str, ttl_seconds: int) -> Result[None]:
        self._entries[key] = (value, ttl_seconds)
        return Return.ok(None)

    async def delete(self, key: str) -> Result[None]:
        self._entries.pop(key, None)
        return Return.ok(None)

    def keys(self) -> List[str]:
        self._entries.expire()
        return list(self._entries.keys())
