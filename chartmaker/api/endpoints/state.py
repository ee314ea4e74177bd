from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from chartmaker.core.container import ServiceContainer, get_container
from chartmaker.services.state_store import StateStoreError

router = APIRouter(prefix="/api", tags=["state"])

NO_CACHE = {"Cache-Control": "no-cache"}


@router.get("/state")
async def load_state(services: ServiceContainer = Depends(get_container)):
    try:
        data = services.state.load()
    except (StateStoreError, OSError) as e:
        logger.error(f"Failed to load grid state: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)}, headers=NO_CACHE)
    return JSONResponse(content=data, headers=NO_CACHE)


@router.post("/state")
async def save_state(request: Request, services: ServiceContainer = Depends(get_container)):
    body = await request.body()
    try:
        services.state.save(body)
    except OSError as e:
        logger.error(f"Failed to save grid state: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    return {"ok": True}
