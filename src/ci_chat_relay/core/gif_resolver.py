"""GIF resolution with a bounded, expiring per-term cache.

A lookup for a term that was searched within the freshness window picks
from the cached URLs without calling the search API. A miss (or a stale
or empty entry) searches again, filters out rejected ids and replaces
the cached entry wholesale, even when nothing survived the filter.
"""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Callable, Iterable

import structlog
from cachetools import TTLCache

from ci_chat_relay.config.schema import GiphyConfig
from ci_chat_relay.interfaces.gif import GifSearchProvider
from ci_chat_relay.models.gif import GifCacheEntry

log = structlog.get_logger()

DEFAULT_FRESHNESS_SECONDS = 60 * 60
DEFAULT_MAX_ENTRIES = 256


class GifCache:
    """Search term -> cached candidate URLs.

    Entries older than ``ttl`` seconds are treated as missing on lookup;
    there is no background eviction pass. Each get or put takes the lock
    once, so a read-then-fetch-then-write sequence in a caller is not
    atomic: two concurrent misses both fetch and the last write wins.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_FRESHNESS_SECONDS,
        maxsize: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl: Freshness window in seconds.
            maxsize: Maximum number of terms kept.
            clock: Monotonic time source (seconds).
        """
        self._clock = clock
        self._entries: TTLCache[str, GifCacheEntry] = TTLCache(
            maxsize=maxsize,
            ttl=ttl,
            timer=clock,
        )
        self._lock = asyncio.Lock()

    async def get(self, term: str) -> GifCacheEntry | None:
        """Return the fresh entry for a term, or None."""
        async with self._lock:
            return self._entries.get(term)

    async def put(self, term: str, urls: Iterable[str]) -> GifCacheEntry:
        """Replace the entry for a term and return it."""
        entry = GifCacheEntry(urls=tuple(urls), fetched_at=self._clock())
        async with self._lock:
            self._entries[term] = entry
        return entry

    def __len__(self) -> int:
        return len(self._entries)


class GifResolver:
    """Resolves a search term to a single GIF URL.

    Example:
        resolver = GifResolver(GiphyClient(config), GifCache())
        url = await resolver.resolve("crikey", limit=20)
    """

    def __init__(
        self,
        search: GifSearchProvider,
        cache: GifCache,
        reject_ids: Iterable[str] = (),
        fallback_url: str = "https://media.giphy.com/media/VbnUQpnihPSIgIXuZv/giphy.gif",
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            search: Upstream GIF search.
            cache: Per-term result cache owned by this resolver.
            reject_ids: Result ids that are never returned.
            fallback_url: Returned when no acceptable result exists.
            rng: Random source for picking among candidates.
        """
        self._search = search
        self._cache = cache
        self._reject_ids = frozenset(reject_ids)
        self._fallback_url = fallback_url
        self._rng = rng or random.Random()

    @classmethod
    def from_config(cls, search: GifSearchProvider, config: GiphyConfig) -> GifResolver:
        """Build a resolver and its cache from Giphy configuration."""
        cache = GifCache(ttl=config.cache_ttl, maxsize=config.cache_max_entries)
        return cls(
            search,
            cache,
            reject_ids=config.reject_ids,
            fallback_url=config.fallback_url,
        )

    @property
    def cache(self) -> GifCache:
        """The resolver's result cache."""
        return self._cache

    async def resolve(self, term: str, limit: int) -> str:
        """Return one GIF URL for a term.

        Args:
            term: Search term (also the cache key).
            limit: Result limit passed to the search on a miss.

        Returns:
            A randomly chosen candidate URL, or the fallback URL.

        Raises:
            TransportError: If the search API can't be reached.
            ApiError: If the search API answers badly.
        """
        entry = await self._cache.get(term)
        if entry is not None and entry.urls:
            log.debug("gif_cache_hit", term=term, candidates=len(entry.urls))
            return self._rng.choice(entry.urls)

        log.debug("gif_cache_miss", term=term)
        results = await self._search.search(term, limit)

        urls: list[str] = []
        for result in results:
            if result.id in self._reject_ids:
                log.info("gif_rejected", gif_id=result.id, url=result.url)
                continue
            urls.append(result.url)

        entry = await self._cache.put(term, urls)

        if not entry.urls:
            log.info("gif_fallback_used", term=term)
            return self._fallback_url

        return self._rng.choice(entry.urls)
