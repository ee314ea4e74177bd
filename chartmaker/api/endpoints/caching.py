from fastapi import APIRouter, Depends
from loguru import logger

from chartmaker.core.container import ServiceContainer, get_container

router = APIRouter(prefix="/api/cache", tags=["cache"])


@router.get("")
async def cache_stats(services: ServiceContainer = Depends(get_container)) -> dict[str, dict[str, int]]:
    return {
        "bangumi": services.bangumi.gateway.stats(),
        "vndb": services.vndb.gateway.stats(),
    }


@router.delete("")
async def clear_caches(services: ServiceContainer = Depends(get_container)):
    """
    Clear all in-process upstream response caches.
    The next request for any query goes to the catalog APIs again.
    """
    services.clear_caches()
    logger.info("Cache cleared via API endpoint")
    return {"message": "All caches cleared successfully", "status": "success"}
