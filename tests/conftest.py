import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from chartmaker.core.cache import ResponseCache
from chartmaker.core.container import ServiceContainer
from chartmaker.services.bangumi import BangumiClient, BangumiService
from chartmaker.services.covers import CoverStore
from chartmaker.services.recommendation import RecommendationEngine
from chartmaker.services.state_store import StateStore
from chartmaker.services.vndb import VNDBClient, VNDBService

Handler = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def unreachable(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"Unexpected upstream request: {request.method} {request.url}")


def bangumi_item(item_id: int, name: str = "", item_type: int = 2, score: float = 7.0) -> dict:
    return {
        "id": item_id,
        "name": name or f"subject-{item_id}",
        "name_cn": "",
        "images": {"common": f"http://lain.bgm.tv/pic/{item_id}.jpg"},
        "type": item_type,
        "score": score,
    }


def bangumi_tag_pools(pools: dict[str, list[int]], calls: list | None = None) -> Handler:
    """Serve v0 search results keyed by the joined, sorted tag filter of the request."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if calls is not None:
            calls.append(body)
        tags = ",".join(sorted(body.get("filter", {}).get("tag", [])))
        if tags not in pools:
            return httpx.Response(500, text="boom")
        data = [bangumi_item(i) for i in pools[tags]]
        return httpx.Response(200, json={"total": len(data), "data": data})

    return handler


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def covers(tmp_path: Path) -> CoverStore:
    store = CoverStore(tmp_path)
    store.ensure_dir()
    return store


def build_container(base_dir: Path, bangumi_handler: Handler = unreachable, vndb_handler: Handler = unreachable):
    covers = CoverStore(base_dir)
    bangumi_cache: ResponseCache[bytes] = ResponseCache("bangumi")
    vndb_cache: ResponseCache[bytes] = ResponseCache("vndb")
    bangumi = BangumiService(
        bangumi_cache, covers, client=BangumiClient(transport=httpx.MockTransport(bangumi_handler))
    )
    vndb = VNDBService(vndb_cache, covers, client=VNDBClient(transport=httpx.MockTransport(vndb_handler)))
    return ServiceContainer(
        base_dir=base_dir,
        covers=covers,
        state=StateStore(base_dir),
        bangumi_cache=bangumi_cache,
        vndb_cache=vndb_cache,
        bangumi=bangumi,
        vndb=vndb,
        recommender=RecommendationEngine({"bangumi": bangumi.browse, "vndb": vndb.browse}),
        caches=[bangumi_cache, vndb_cache],
    )
