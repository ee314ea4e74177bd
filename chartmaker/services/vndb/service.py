from typing import Any

from async_lru import alru_cache
from loguru import logger
from pydantic import ValidationError

from chartmaker.core.cache import ResponseCache
from chartmaker.core.constants import VNDB_DEFAULT_RESULTS, VNDB_MAX_RESULTS
from chartmaker.core.exceptions import BadRequestError, UpstreamError
from chartmaker.core.gateway import CatalogGateway
from chartmaker.models.catalog import BrowseRequest, BrowseResponse, BrowseResult, DownloadResult
from chartmaker.models.vndb import (
    DEFAULT_VN_FIELDS,
    VNDBAuthInfo,
    VNDBQueryRequest,
    VNDBQueryResponse,
    VNDBStats,
)
from chartmaker.services.covers import CoverStore, sanitize_filename
from chartmaker.services.vndb.client import VNDBClient

VN_PATH = "/vn"

# Bangumi-style browse sort -> (VNDB sort field, reverse)
BROWSE_SORTS: dict[str, tuple[str, bool]] = {
    "rank": ("rating", True),
    "score": ("rating", True),
    "heat": ("votecount", True),
    "match": ("searchrank", False),
}

VN_TYPE_LABEL = "视觉小说"


def build_vn_filters(tags: list[str] | tuple[str, ...], keyword: str = "") -> list[Any] | None:
    """Combine tag and keyword predicates into a single Kana filter expression."""
    predicates: list[Any] = [["tag", "=", tag] for tag in tags]
    if keyword:
        predicates.append(["search", "=", keyword])
    if not predicates:
        return None
    if len(predicates) == 1:
        return predicates[0]
    return ["and", *predicates]


class VNDBService:
    """
    Visual novel queries against VNDB Kana v2.

    ``query_vn`` is served through a ``CatalogGateway``; stats and schema are
    small, slow-changing documents and are memoized with a TTL instead.
    """

    def __init__(
        self,
        cache: ResponseCache[bytes],
        covers: CoverStore,
        client: VNDBClient | None = None,
        token: str = "",
    ):
        self.client = client or VNDBClient(token=token)
        self.covers = covers
        self.gateway: CatalogGateway[bytes] = CatalogGateway("vndb", cache, self.client.post_raw)

    async def close(self):
        await self.client.close()

    def set_token(self, token: str) -> None:
        self.client.set_token(token)

    @staticmethod
    def normalize_query(req: VNDBQueryRequest) -> VNDBQueryRequest:
        return req.model_copy(
            update={
                "results": req.results if 0 < req.results <= VNDB_MAX_RESULTS else VNDB_DEFAULT_RESULTS,
                "page": req.page if req.page > 0 else 1,
                "fields": req.fields if req.fields.strip() else DEFAULT_VN_FIELDS,
                "sort": req.sort if req.sort.strip() else "id",
            }
        )

    async def query_vn(self, req: VNDBQueryRequest) -> VNDBQueryResponse:
        req = self.normalize_query(req)
        body = req.to_body()
        raw = await self.gateway.query(VN_PATH, body)
        try:
            return VNDBQueryResponse.model_validate_json(raw)
        except ValidationError as e:
            self.gateway.invalidate(VN_PATH, body)
            raise UpstreamError(f"Failed to parse VNDB response: {e}") from e

    async def search_vn(self, keyword: str, page: int = 1, results: int = VNDB_DEFAULT_RESULTS) -> VNDBQueryResponse:
        keyword = (keyword or "").strip()
        if not keyword:
            raise BadRequestError("Keyword must not be empty")

        req = VNDBQueryRequest(
            filters=["search", "=", keyword],
            fields=DEFAULT_VN_FIELDS,
            sort="searchrank",
            results=results,
            page=page,
            count=True,
        )
        return await self.query_vn(req)

    async def browse(self, req: BrowseRequest) -> BrowseResponse:
        """Tag/keyword browse shaped like the Bangumi one, so VN cells can share the recommend pipeline."""
        keyword = req.keyword.strip()
        filters = build_vn_filters(req.tags, keyword)
        sort, reverse = BROWSE_SORTS.get(req.sort, BROWSE_SORTS["rank"])
        if sort == "searchrank" and not keyword:
            sort, reverse = BROWSE_SORTS["rank"]
        if req.order == "asc":
            reverse = not reverse

        limit = req.limit if 0 < req.limit <= VNDB_MAX_RESULTS else VNDB_DEFAULT_RESULTS
        # Kana pages are 1-based; offsets are rounded down to a page boundary
        page = max(req.offset, 0) // limit + 1
        resp = await self.query_vn(
            VNDBQueryRequest(
                filters=filters,
                fields=DEFAULT_VN_FIELDS,
                sort=sort,
                reverse=reverse,
                results=limit,
                page=page,
                count=True,
            )
        )

        results = [
            BrowseResult(
                id=vn.id,
                name=vn.title,
                name_cn=vn.alttitle or "",
                cover=vn.image.best_url() if vn.image else "",
                type_label=VN_TYPE_LABEL,
                score=(vn.rating or 0.0) / 10,
                source="vndb",
            )
            for vn in resp.results
        ]
        return BrowseResponse(results=results, total=resp.count, offset=(page - 1) * limit, limit=limit)

    @alru_cache(maxsize=1, ttl=3600)
    async def get_stats(self) -> VNDBStats:
        data = await self.client.get("/stats")
        try:
            return VNDBStats.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(f"Failed to parse VNDB stats: {e}") from e

    @alru_cache(maxsize=1, ttl=86400)
    async def get_schema(self) -> dict[str, Any]:
        data = await self.client.get("/schema")
        if not isinstance(data, dict):
            raise UpstreamError("Unexpected VNDB schema response")
        return data

    async def get_auth_info(self) -> VNDBAuthInfo:
        if not self.client.token:
            raise BadRequestError("Missing VNDB API token")
        data = await self.client.get("/authinfo", headers=self.client.auth_headers())
        try:
            return VNDBAuthInfo.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(f"Failed to parse VNDB auth info: {e}") from e

    async def download_cover(self, image_url: str, filename: str = "") -> DownloadResult:
        image_url = (image_url or "").strip()
        if not image_url:
            raise BadRequestError("Missing image URL")
        filename = sanitize_filename(image_url, filename)

        existing = self.covers.find_existing(filename)
        if existing is not None:
            logger.debug(f"Reusing existing cover {filename}")
            return existing

        response = await self.client.fetch(image_url)
        content_type = response.headers.get("Content-Type", "")
        if not content_type.startswith("image/"):
            raise UpstreamError(f"Not an image: {content_type}")
        return self.covers.save(filename, response.content, content_type)

    def clear_memoized(self) -> None:
        self.get_stats.cache_clear()
        self.get_schema.cache_clear()
