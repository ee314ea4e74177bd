import json

import httpx
import pytest
from fastapi.testclient import TestClient

from chartmaker.core.app import create_app
from tests.conftest import bangumi_tag_pools, build_container


@pytest.fixture
def bangumi_calls():
    return []


@pytest.fixture
def client(tmp_path, bangumi_calls):
    handler = bangumi_tag_pools({"comedy": [1, 2, 3], "drama": [9], "": [40, 41]}, calls=bangumi_calls)
    container = build_container(tmp_path, bangumi_handler=handler)
    with TestClient(create_app(container)) as test_client:
        yield test_client


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_index_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Chart Maker" in response.text
    assert response.headers["Cache-Control"] == "no-cache"


def test_startup_creates_state_and_covers(client, tmp_path):
    assert (tmp_path / "state.json").read_text() == "{}\n"
    assert (tmp_path / "covers").is_dir()


def test_state_round_trip(client):
    assert client.get("/api/state").json() == {}

    response = client.post("/api/state", content=json.dumps({"rows": 3, "cells": []}))
    assert response.json() == {"ok": True}
    assert client.get("/api/state").json() == {"rows": 3, "cells": []}


def test_state_rejects_invalid_json(client):
    response = client.post("/api/state", content=b"{bad")
    assert response.status_code == 400
    assert "error" in response.json()


def test_recommend_batch(client, bangumi_calls):
    payload = {
        "cells": [
            {"label": "c1", "tags": ["comedy"], "offset": 0},
            {"label": "c2", "tags": ["comedy"], "offset": 1},
            {"label": "c3", "tags": ["drama"], "offset": 0},
            {"label": "c4", "tags": ["drama"], "offset": 0},
        ],
        "excludeIDs": [],
    }
    results = client.post("/api/recommend", json=payload).json()["results"]

    assert [r["label"] for r in results] == ["c1", "c2", "c3", "c4"]
    assert [r["item"]["id"] if r["found"] else None for r in results] == [1, 3, 9, None]
    assert "item" not in results[3]
    assert len(bangumi_calls) == 2
    assert all(body["sort"] == "rank" for body in bangumi_calls)


def test_recommend_respects_exclusions_and_failures(client):
    payload = {
        "cells": [{"tags": ["comedy"]}, {"tags": ["missing"]}, {}],
        "excludeIDs": [1, 40],
    }
    results = client.post("/api/recommend", json=payload).json()["results"]

    assert [r["found"] for r in results] == [True, False, True]
    assert results[0]["item"]["id"] == 2
    assert results[2]["item"]["id"] == 41


def test_recommend_empty_batch(client, bangumi_calls):
    assert client.post("/api/recommend", json={"cells": []}).json() == {"results": []}
    assert bangumi_calls == []


def test_browse_errors_map_to_status_codes(client):
    response = client.post("/api/browse", json={"tags": [], "keyword": ""})
    assert response.status_code == 400

    response = client.post("/api/browse", json={"tags": ["missing"]})
    assert response.status_code == 502
    assert response.json() == {"error": "Bangumi API error 500"}


def test_browse_is_cached_across_requests(client, bangumi_calls):
    client.post("/api/browse", json={"tags": ["drama"]})
    client.post("/api/browse", json={"tags": ["drama"]})
    assert len(bangumi_calls) == 1

    stats = client.get("/api/cache").json()
    assert stats["bangumi"] == {"entries": 1, "hits": 1, "misses": 1}

    client.delete("/api/cache")
    client.post("/api/browse", json={"tags": ["drama"]})
    assert len(bangumi_calls) == 2


def test_malformed_request_is_bad_request(client):
    response = client.post("/api/search", content=b"not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400


def test_upload_and_list_covers(client):
    response = client.post("/api/upload-cover", files={"file": ("poster.png", b"\x89PNG", "image/png")})
    assert response.json() == {"ok": True, "filename": "poster.png", "path": "covers/poster.png", "size": 4}

    response = client.post("/api/upload-cover", files={"file": ("poster.png", b"\x89PNG", "image/png")})
    assert response.json()["filename"] == "poster_1.png"

    assert client.get("/api/covers").json() == ["poster.png", "poster_1.png"]
    assert client.get("/covers/poster.png").content == b"\x89PNG"


def test_upload_rejects_unknown_extension(client):
    response = client.post("/api/upload-cover", files={"file": ("notes.txt", b"hi", "text/plain")})
    assert response.status_code == 400


def test_vndb_search_cards(tmp_path):
    def vndb_handler(request: httpx.Request) -> httpx.Response:
        vn = {
            "id": "v17",
            "title": "Ever17",
            "alttitle": "エバー17",
            "image": {"url": "https://t/1.jpg"},
            "rating": 90,
        }
        return httpx.Response(200, json={"results": [vn], "more": True, "count": 5})

    with TestClient(create_app(build_container(tmp_path, vndb_handler=vndb_handler))) as client:
        body = client.post("/api/vndb/search", json={"keyword": "ever17"}).json()

    assert body == {
        "results": [
            {
                "id": "v17",
                "name": "Ever17",
                "name_cn": "エバー17",
                "cover": "https://t/1.jpg",
                "score": 9.0,
                "source": "vndb",
            }
        ],
        "total": 5,
        "more": True,
    }


def test_malformed_upstream_payload_is_bad_gateway(tmp_path):
    container = build_container(tmp_path, bangumi_handler=lambda request: httpx.Response(200, json=[]))

    with TestClient(create_app(container)) as client:
        search = client.post("/api/search", json={"keyword": "lain"})
        browse = client.post("/api/browse", json={"tags": ["SF"]})

    assert search.status_code == browse.status_code == 502
    assert search.json()["error"].startswith("Failed to parse Bangumi search response")
    assert browse.json()["error"].startswith("Failed to parse Bangumi browse response")
