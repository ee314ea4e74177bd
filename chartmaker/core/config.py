from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_ENV: Literal["development", "production"] = "production"
    # Holds state.json and the covers/ directory
    BASE_DIR: Path = Path.cwd()
    # Development mode serves the frontend from disk instead of the bundled template
    FRONTEND_DIR: Path | None = None
    OPEN_BROWSER: bool = True
    LOG_LEVEL: str = "INFO"

    # Optional bearer token for VNDB endpoints that require authentication
    VNDB_TOKEN: str = ""


settings = Settings()
