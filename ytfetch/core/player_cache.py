"""
Single-slot, time-bounded cache for the player JavaScript bundle.

Only one entry is kept at a time: storing a new asset evicts the previous one
regardless of its key. The cache is not locked; callers sharing one instance
across concurrent resolutions must serialize access themselves.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: bytes
    expires_at: float


class PlayerAssetCache:
    def __init__(
        self,
        ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl if ttl is not None else get_settings().player_cache_ttl
        self._clock = clock
        self._entry: CacheEntry | None = None

    def get(self, key: str) -> bytes | None:
        """Return the payload stored under ``key`` if it has not expired."""
        entry = self._entry
        if entry is None or entry.key != key:
            logger.debug("Player cache miss: %s", key)
            return None
        if self._clock() >= entry.expires_at:
            logger.debug("Player cache expired: %s", key)
            return None
        logger.debug("Player cache hit: %s", key)
        return entry.payload

    def set(self, key: str, payload: bytes) -> None:
        self._entry = CacheEntry(key=key, payload=payload, expires_at=self._clock() + self.ttl)

    @property
    def entry(self) -> CacheEntry | None:
        return self._entry
