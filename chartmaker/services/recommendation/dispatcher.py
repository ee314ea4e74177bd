import asyncio
from collections.abc import Awaitable, Callable, Hashable, Iterable
from typing import TypeVar

from loguru import logger

from chartmaker.core.constants import RECOMMEND_CONCURRENCY, REQUEST_TIMEOUT_SECONDS

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class BoundedDispatcher:
    """
    Scatter/gather over distinct query groups.

    Issues exactly one ``fetch`` per key with at most ``concurrency`` calls in
    flight, waits for all of them, and returns every key mapped to its pool.
    A failed or timed-out call yields an empty pool for that key only.
    """

    def __init__(self, concurrency: int = RECOMMEND_CONCURRENCY, timeout: float = REQUEST_TIMEOUT_SECONDS):
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")
        self.concurrency = concurrency
        self.timeout = timeout

    async def dispatch(self, keys: Iterable[K], fetch: Callable[[K], Awaitable[list[V]]]) -> dict[K, list[V]]:
        keys = list(dict.fromkeys(keys))
        if not keys:
            return {}

        sem = asyncio.Semaphore(self.concurrency)

        async def _run(key: K) -> list[V]:
            async with sem:
                return await asyncio.wait_for(fetch(key), timeout=self.timeout)

        results = await asyncio.gather(*[_run(key) for key in keys], return_exceptions=True)

        pools: dict[K, list[V]] = {}
        for key, result in zip(keys, results):
            if isinstance(result, asyncio.TimeoutError):
                logger.warning(f"Group fetch timed out after {self.timeout}s: {key}")
                pools[key] = []
            elif isinstance(result, BaseException):
                logger.warning(f"Group fetch failed for {key}: {result}")
                pools[key] = []
            else:
                pools[key] = list(result or [])
        return pools
