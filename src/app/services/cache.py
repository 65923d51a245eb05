from abc import ABC, abstractmethod
from typing import Optional

from libs.result import Result


class ICache(ABC):
    """
    Best-effort key/value cache.

    Implementations never raise: every call returns a Result so that the
    caller has to acknowledge a failure explicitly. A cache error must never
    turn into an operation failure.
    """

    @abstractmethod
    async def get(self, key: str) -> Result[Optional[str]]:
        """Value for ``key``, or Ok(None) on a miss"""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> Result[None]:
        pass

    @abstractmethod
    async def delete(self, key: str) -> Result[None]:
        pass
