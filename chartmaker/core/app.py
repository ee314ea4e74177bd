from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from jinja2 import Environment, FileSystemLoader, TemplateNotFound
from loguru import logger

from chartmaker.api.main import api_router
from chartmaker.core.config import settings
from chartmaker.core.container import ServiceContainer
from chartmaker.core.exceptions import BadRequestError, UpstreamError
from chartmaker.core.version import __version__

# chartmaker/core/app.py -> chartmaker/core -> chartmaker
package_root = Path(__file__).resolve().parent.parent
templates_dir = package_root / "templates"


def frontend_dir() -> Path:
    """Development mode can serve an on-disk frontend; otherwise the bundled template is used."""
    if settings.APP_ENV == "development" and settings.FRONTEND_DIR:
        return Path(settings.FRONTEND_DIR)
    return templates_dir


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Build the application around a service container (a prebuilt one can be injected)."""
    services = container or ServiceContainer.build()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifespan events (startup/shutdown).
        """
        services.start()
        try:
            yield
        finally:
            await services.close()

    app = FastAPI(
        title="Chart Maker",
        description="Local cover grid builder backed by Bangumi and VNDB",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if settings.APP_ENV != "development" else "/docs",
        redoc_url=None if settings.APP_ENV != "development" else "/redoc",
    )
    app.state.container = services

    @app.exception_handler(BadRequestError)
    async def bad_request_handler(request: Request, exc: BadRequestError):
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Failed to parse request"})

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError):
        logger.warning(f"Upstream failure on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=502, content={"error": exc.message})

    app.mount("/covers", StaticFiles(directory=str(services.covers.directory), check_dir=False), name="covers")

    jinja_env = Environment(loader=FileSystemLoader(str(frontend_dir())))

    @app.get("/", response_class=HTMLResponse)
    async def index_page(request: Request):
        try:
            template = jinja_env.get_template("index.html")
        except TemplateNotFound:
            logger.error(f"index.html not found in {frontend_dir()}")
            return HTMLResponse("index.html not found", status_code=500)
        html_content = template.render(request=request, app_version=__version__)
        return HTMLResponse(content=html_content, headers={"Cache-Control": "no-cache"})

    app.include_router(api_router)
    return app


app = create_app()
