from fastapi import APIRouter, Depends
from pydantic import BaseModel

from chartmaker.core.container import ServiceContainer, get_container
from chartmaker.models.catalog import BrowseRequest, BrowseResponse, SearchResult
from chartmaker.models.recommend import RecommendRequest, RecommendResponse

router = APIRouter(prefix="/api", tags=["catalog"])


class SearchRequest(BaseModel):
    keyword: str = ""
    type: int = 0


class SearchResponse(BaseModel):
    results: list[SearchResult]


@router.post("/search", response_model=SearchResponse)
async def search(body: SearchRequest, services: ServiceContainer = Depends(get_container)):
    # 2 = anime
    results = await services.bangumi.search(body.keyword, body.type or 2)
    return SearchResponse(results=results)


@router.post("/browse", response_model=BrowseResponse)
async def browse(body: BrowseRequest, services: ServiceContainer = Depends(get_container)):
    return await services.bangumi.browse(body)


@router.post("/recommend", response_model=RecommendResponse, response_model_exclude_none=True)
async def recommend(body: RecommendRequest, services: ServiceContainer = Depends(get_container)):
    return await services.recommender.recommend(body)
