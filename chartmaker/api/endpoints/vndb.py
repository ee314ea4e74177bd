from fastapi import APIRouter, Depends
from pydantic import BaseModel

from chartmaker.core.container import ServiceContainer, get_container
from chartmaker.models.vndb import VNDBStats

router = APIRouter(prefix="/api/vndb", tags=["vndb"])


class VNDBSearchRequest(BaseModel):
    keyword: str = ""
    page: int = 1


class VNCard(BaseModel):
    """VNDB result mapped onto the card shape the frontend uses for Bangumi items."""

    id: str
    name: str
    name_cn: str
    cover: str
    score: float
    source: str = "vndb"


@router.post("/search")
async def search_vn(body: VNDBSearchRequest, services: ServiceContainer = Depends(get_container)):
    resp = await services.vndb.search_vn(body.keyword, max(body.page, 1), 20)
    cards = [
        VNCard(
            id=vn.id,
            name=vn.title,
            name_cn=vn.alttitle or "",
            cover=vn.image.best_url() if vn.image else "",
            score=(vn.rating or 0.0) / 10,
        )
        for vn in resp.results
    ]
    return {"results": cards, "total": resp.count, "more": resp.more}


@router.get("/stats", response_model=VNDBStats)
async def vndb_stats(services: ServiceContainer = Depends(get_container)):
    return await services.vndb.get_stats()
