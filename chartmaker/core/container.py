from dataclasses import dataclass, field
from pathlib import Path

from fastapi import Request
from loguru import logger

from chartmaker.core.cache import ResponseCache
from chartmaker.core.config import settings
from chartmaker.services.bangumi import BangumiService
from chartmaker.services.covers import CoverStore
from chartmaker.services.recommendation import RecommendationEngine
from chartmaker.services.state_store import StateStore
from chartmaker.services.vndb import VNDBService


@dataclass
class ServiceContainer:
    """
    Everything with process lifetime: one cache + gateway per catalog, the
    clients behind them, and the local stores. Built once in the app lifespan.
    """

    base_dir: Path
    covers: CoverStore
    state: StateStore
    bangumi_cache: ResponseCache[bytes]
    vndb_cache: ResponseCache[bytes]
    bangumi: BangumiService
    vndb: VNDBService
    recommender: RecommendationEngine
    caches: list[ResponseCache] = field(default_factory=list)

    @classmethod
    def build(cls, base_dir: Path | None = None, vndb_token: str | None = None) -> "ServiceContainer":
        base_dir = Path(base_dir or settings.BASE_DIR)
        covers = CoverStore(base_dir)
        state = StateStore(base_dir)
        bangumi_cache: ResponseCache[bytes] = ResponseCache("bangumi")
        vndb_cache: ResponseCache[bytes] = ResponseCache("vndb")
        bangumi = BangumiService(bangumi_cache, covers)
        vndb = VNDBService(vndb_cache, covers, token=settings.VNDB_TOKEN if vndb_token is None else vndb_token)
        recommender = RecommendationEngine({"bangumi": bangumi.browse, "vndb": vndb.browse})
        return cls(
            base_dir=base_dir,
            covers=covers,
            state=state,
            bangumi_cache=bangumi_cache,
            vndb_cache=vndb_cache,
            bangumi=bangumi,
            vndb=vndb,
            recommender=recommender,
            caches=[bangumi_cache, vndb_cache],
        )

    def start(self) -> None:
        """Create on-disk layout and start cache sweepers. Requires a running event loop."""
        self.covers.ensure_dir()
        self.state.ensure_file()
        for cache in self.caches:
            cache.start()
        logger.info(f"Services started (base dir: {self.base_dir})")

    async def close(self) -> None:
        for cache in self.caches:
            await cache.close()
        await self.bangumi.close()
        await self.vndb.close()
        logger.info("Services closed")

    def clear_caches(self) -> None:
        for cache in self.caches:
            cache.clear()
        self.vndb.clear_memoized()


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container
