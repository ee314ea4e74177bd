from collections.abc import Awaitable, Callable, Mapping

from loguru import logger

from chartmaker.core.constants import MAX_BROWSE_LIMIT, VNDB_SUBJECT_TYPE
from chartmaker.models.catalog import BrowseRequest, BrowseResponse, BrowseResult
from chartmaker.models.recommend import RecommendRequest, RecommendResponse
from chartmaker.services.recommendation.allocator import allocate
from chartmaker.services.recommendation.dispatcher import BoundedDispatcher
from chartmaker.services.recommendation.grouping import QueryGroupKey, group_specs

BrowseFn = Callable[[BrowseRequest], Awaitable[BrowseResponse]]

BANGUMI_SOURCE = "bangumi"
VNDB_SOURCE = "vndb"


class RecommendationEngine:
    """
    Batch "recommend me an item for this cell" pipeline.

    1. Group cells by query shape.
    2. Fetch one pool per distinct group, concurrently and bounded.
    3. Allocate unique items back to cells in input order.
    """

    def __init__(self, browsers: Mapping[str, BrowseFn], dispatcher: BoundedDispatcher | None = None):
        if BANGUMI_SOURCE not in browsers:
            raise ValueError("a bangumi browser is required")
        self.browsers = dict(browsers)
        self.dispatcher = dispatcher or BoundedDispatcher()

    def source_for(self, key: QueryGroupKey) -> str:
        if key.subject_type == VNDB_SUBJECT_TYPE and VNDB_SOURCE in self.browsers:
            return VNDB_SOURCE
        return BANGUMI_SOURCE

    async def fetch_pool(self, key: QueryGroupKey) -> list[BrowseResult]:
        browse = self.browsers[self.source_for(key)]
        req = BrowseRequest(
            tags=list(key.tags),
            sort=key.sort,
            subject_type=key.subject_type,
            limit=MAX_BROWSE_LIMIT,
        )
        resp = await browse(req)
        return resp.results

    async def recommend(self, request: RecommendRequest) -> RecommendResponse:
        if not request.cells:
            return RecommendResponse(results=[])

        groups = group_specs(request.cells)
        pools = await self.dispatcher.dispatch(groups.keys(), self.fetch_pool)
        results = allocate(request.cells, pools, request.exclude_ids)

        found = sum(1 for r in results if r.found)
        logger.info(f"Recommended {found}/{len(results)} cells from {len(groups)} query groups")
        return RecommendResponse(results=results)
