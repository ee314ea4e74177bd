from fastapi import APIRouter

from .endpoints.caching import router as caching_router
from .endpoints.catalog import router as catalog_router
from .endpoints.covers import router as covers_router
from .endpoints.health import router as health_router
from .endpoints.state import router as state_router
from .endpoints.vndb import router as vndb_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(state_router)
api_router.include_router(covers_router)
api_router.include_router(catalog_router)
api_router.include_router(vndb_router)
api_router.include_router(caching_router)
