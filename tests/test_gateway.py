import pytest

from chartmaker.core.cache import ResponseCache
from chartmaker.core.exceptions import UpstreamError
from chartmaker.core.gateway import CatalogGateway


class RecordingUpstream:
    def __init__(self, fail_times: int = 0):
        self.calls: list[tuple[str, bytes]] = []
        self.fail_times = fail_times

    async def __call__(self, endpoint: str, body: bytes) -> bytes:
        self.calls.append((endpoint, body))
        if self.fail_times:
            self.fail_times -= 1
            raise UpstreamError("Upstream API error 503", status_code=503)
        return b'{"data": []}'


@pytest.mark.asyncio
async def test_second_identical_query_is_served_from_cache(clock):
    upstream = RecordingUpstream()
    gateway = CatalogGateway("test", ResponseCache(clock=clock), upstream)

    first = await gateway.query("/search", {"b": 1, "a": 2})
    second = await gateway.query("/search", {"a": 2, "b": 1})

    assert first == second == b'{"data": []}'
    assert len(upstream.calls) == 1
    assert gateway.stats() == {"entries": 1, "hits": 1, "misses": 1}


@pytest.mark.asyncio
async def test_body_is_sent_canonicalized(clock):
    upstream = RecordingUpstream()
    gateway = CatalogGateway("test", ResponseCache(clock=clock), upstream)

    await gateway.query("/search", {"sort": "rank", "filter": {"tag": ["x"]}})

    assert upstream.calls == [("/search", b'{"filter":{"tag":["x"]},"sort":"rank"}')]


@pytest.mark.asyncio
async def test_failure_is_not_cached(clock):
    upstream = RecordingUpstream(fail_times=1)
    cache = ResponseCache(clock=clock)
    gateway = CatalogGateway("test", cache, upstream)

    with pytest.raises(UpstreamError):
        await gateway.query("/search", {"a": 1})
    assert len(cache) == 0

    assert await gateway.query("/search", {"a": 1}) == b'{"data": []}'
    assert len(upstream.calls) == 2


@pytest.mark.asyncio
async def test_expired_entry_goes_upstream_again(clock):
    upstream = RecordingUpstream()
    gateway = CatalogGateway("test", ResponseCache(ttl=60, clock=clock), upstream)

    await gateway.query("/search", {"a": 1})
    clock.advance(61)
    await gateway.query("/search", {"a": 1})

    assert len(upstream.calls) == 2


@pytest.mark.asyncio
async def test_invalidate_forgets_one_query(clock):
    upstream = RecordingUpstream()
    gateway = CatalogGateway("test", ResponseCache(clock=clock), upstream)

    await gateway.query("/search", {"a": 1})
    await gateway.query("/search", {"a": 2})
    gateway.invalidate("/search", {"a": 1})
    await gateway.query("/search", {"a": 1})
    await gateway.query("/search", {"a": 2})

    assert [body for _, body in upstream.calls] == [b'{"a":1}', b'{"a":2}', b'{"a":1}']
