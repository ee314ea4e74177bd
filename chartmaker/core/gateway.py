from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from loguru import logger

from chartmaker.core.cache import ResponseCache, canonical_json, make_fingerprint

T = TypeVar("T")

RawQuery = Callable[[str, bytes], Awaitable[T]]


class CatalogGateway(Generic[T]):
    """
    Cache-first access to one upstream search/browse capability.

    ``raw_query(endpoint, body_json)`` performs the actual upstream call. Its
    result is stored only on success; a failure propagates to the caller and
    leaves the cache untouched, so the next identical query goes upstream again.
    """

    def __init__(self, name: str, cache: ResponseCache[T], raw_query: RawQuery):
        self.name = name
        self.cache = cache
        self._raw_query = raw_query
        self.hits = 0
        self.misses = 0

    async def query(self, endpoint: str, body: Any) -> T:
        key = make_fingerprint(endpoint, body)
        cached = self.cache.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        payload = await self._raw_query(endpoint, canonical_json(body).encode("utf-8"))
        self.cache.put(key, payload)
        logger.debug(f"[{self.name}] Cached response for {endpoint}")
        return payload

    def invalidate(self, endpoint: str, body: Any) -> None:
        """Forget a stored response, e.g. one the caller could not decode."""
        if self.cache.discard(make_fingerprint(endpoint, body)):
            logger.debug(f"[{self.name}] Dropped cached response for {endpoint}")

    def stats(self) -> dict[str, int]:
        return {"entries": len(self.cache), "hits": self.hits, "misses": self.misses}
