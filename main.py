import argparse
import os
import sys
import threading
import webbrowser

import uvicorn
from loguru import logger

from chartmaker.core.config import settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chart Maker local server")
    parser.add_argument("--dev", action="store_true", help="serve frontend files from disk (FRONTEND_DIR or ./frontend)")
    parser.add_argument("--no-browser", action="store_true", help="do not open the browser on startup")
    return parser.parse_args(argv)


def print_startup_banner(mode: str, url: str, cover_count: int) -> None:
    logger.info("Chart Maker - Local Server")
    logger.info(f"Mode:   {mode}")
    logger.info(f"URL:    {url}")
    logger.info(f"Covers: covers/ ({cover_count} images)")
    logger.info("Press Ctrl+C to stop")


if __name__ == "__main__":
    args = parse_args()
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL.upper())

    if args.dev:
        # Must be set before the app module reads settings
        settings.APP_ENV = "development"
        if settings.FRONTEND_DIR is None:
            settings.FRONTEND_DIR = settings.BASE_DIR / "frontend"

    from chartmaker.core.app import app

    PORT = int(os.getenv("PORT", settings.PORT))
    url = f"http://localhost:{PORT}"
    print_startup_banner("Development" if args.dev else "Release", url, len(app.state.container.covers.list_files()))

    if settings.OPEN_BROWSER and not args.no_browser:
        threading.Timer(1.0, webbrowser.open, args=(url,)).start()

    uvicorn.run(app, host="127.0.0.1", port=PORT)
