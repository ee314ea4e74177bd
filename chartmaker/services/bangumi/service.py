from typing import Any, NamedTuple
from urllib.parse import quote

from loguru import logger
from pydantic import ValidationError

from chartmaker.core.cache import ResponseCache
from chartmaker.core.constants import DEFAULT_BROWSE_LIMIT, MAX_BROWSE_LIMIT
from chartmaker.core.exceptions import BadRequestError, UpstreamError
from chartmaker.core.gateway import CatalogGateway
from chartmaker.models.bangumi import BangumiBrowsePage, BangumiSearchPage
from chartmaker.models.catalog import BrowseRequest, BrowseResponse, BrowseResult, DownloadResult, SearchResult
from chartmaker.services.bangumi.client import BangumiClient
from chartmaker.services.covers import CoverStore, sanitize_filename

V0_SEARCH_PATH = "/v0/search/subjects"
LEGACY_SEARCH_PATH = "/search/subject/"


class SubjectType(NamedTuple):
    type_id: int  # 1=book 2=anime 4=game
    meta_tag: str = ""  # empty means no sub-category filter


# Frontend type name -> Bangumi subject type and meta tag
TYPE_MAP: dict[str, SubjectType] = {
    "anime": SubjectType(2),
    "manga": SubjectType(1, "漫画"),
    "novel": SubjectType(1, "轻小说"),
    "galgame": SubjectType(4, "Galgame"),
}

TYPE_LABELS: dict[int, str] = {1: "书籍", 2: "动画", 3: "音乐", 4: "游戏", 6: "三次元"}

VALID_SORTS = {"rank", "score", "heat", "match"}

SUMMARY_MAX_CHARS = 80


class BangumiService:
    """
    Bangumi search, tag browse and cover download.

    Browse goes through a ``CatalogGateway`` so that identical queries within
    the cache TTL are served from memory. Legacy keyword search is uncached.
    """

    def __init__(self, cache: ResponseCache[bytes], covers: CoverStore, client: BangumiClient | None = None):
        self.client = client or BangumiClient()
        self.covers = covers
        self.gateway: CatalogGateway[bytes] = CatalogGateway("bangumi", cache, self.client.post_raw)

    async def close(self):
        await self.client.close()

    async def search(self, keyword: str, subject_type_id: int = 2) -> list[SearchResult]:
        """Keyword search through the legacy API. subject_type_id: 1=book 2=anime 4=game."""
        keyword = (keyword or "").strip()
        if not keyword:
            raise BadRequestError("Keyword must not be empty")

        params = {"type": subject_type_id, "responseGroup": "small", "max_results": 25}
        data = await self.client.get(LEGACY_SEARCH_PATH + quote(keyword, safe=""), params=params)
        try:
            page = BangumiSearchPage.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(f"Failed to parse Bangumi search response: {e}") from e

        return [
            SearchResult(
                id=it.id,
                name=it.name or "",
                name_cn=it.name_cn or "",
                cover=it.cover(),
                summary=(it.summary or "")[:SUMMARY_MAX_CHARS],
            )
            for it in page.items or []
        ]

    @staticmethod
    def normalize_browse(req: BrowseRequest) -> BrowseRequest:
        limit = req.limit if 0 < req.limit <= MAX_BROWSE_LIMIT else DEFAULT_BROWSE_LIMIT
        return req.model_copy(
            update={
                "keyword": req.keyword.strip(),
                "limit": limit,
                "offset": max(req.offset, 0),
                "sort": req.sort if req.sort in VALID_SORTS else "rank",
                "order": req.order if req.order in ("asc", "desc") else "desc",
            }
        )

    @staticmethod
    def build_browse_body(req: BrowseRequest) -> dict[str, Any]:
        """Translate a normalized browse request into a v0 search body."""
        subject_type = TYPE_MAP.get(req.subject_type)
        if not req.tags and not req.keyword and subject_type is None:
            raise BadRequestError("Select a tag, enter a keyword or choose a subject type")

        body: dict[str, Any] = {"sort": req.sort}
        if req.keyword:
            body["keyword"] = req.keyword
        filters: dict[str, Any] = {}
        if req.tags:
            filters["tag"] = list(req.tags)
        if subject_type is not None:
            filters["type"] = [subject_type.type_id]
            if subject_type.meta_tag:
                filters["meta_tags"] = [subject_type.meta_tag]
        if filters:
            body["filter"] = filters
        return body

    async def browse(self, req: BrowseRequest) -> BrowseResponse:
        req = self.normalize_browse(req)
        body = self.build_browse_body(req)

        endpoint = f"{V0_SEARCH_PATH}?limit={req.limit}&offset={req.offset}"
        raw = await self.gateway.query(endpoint, body)
        try:
            page = BangumiBrowsePage.model_validate_json(raw)
        except ValidationError as e:
            self.gateway.invalidate(endpoint, body)
            raise UpstreamError(f"Failed to parse Bangumi browse response: {e}") from e

        results = [
            BrowseResult(
                id=it.id,
                name=it.name or "",
                name_cn=it.name_cn or "",
                cover=it.cover(),
                type_label=TYPE_LABELS.get(it.type, ""),
                score=it.score or 0.0,
            )
            for it in page.data or []
        ]
        # Bangumi pages are descending; ascending order reverses the current page only
        if req.order == "asc":
            results.reverse()

        return BrowseResponse(results=results, total=page.total or 0, offset=req.offset, limit=req.limit)

    async def download_cover(self, image_url: str, filename: str = "") -> DownloadResult:
        image_url = (image_url or "").strip()
        if not image_url:
            raise BadRequestError("Missing image URL")
        filename = sanitize_filename(image_url, filename)

        response = await self.client.fetch(image_url, headers={"Referer": "https://bgm.tv/"})
        logger.debug(f"Downloaded Bangumi cover {image_url}")
        return self.covers.save(filename, response.content, response.headers.get("Content-Type", ""))
