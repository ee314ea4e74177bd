import re
import time
from pathlib import Path
from urllib.parse import urlsplit

from loguru import logger

from chartmaker.core.constants import COVERS_DIR_NAME, IMAGE_EXTENSIONS, MAX_UPLOAD_BYTES
from chartmaker.core.exceptions import BadRequestError
from chartmaker.models.catalog import DownloadResult

UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*]')


def sanitize_filename(image_url: str, filename: str = "") -> str:
    """
    Produce a safe cover filename.

    Falls back to the last path segment of ``image_url`` when ``filename`` is
    empty, replaces characters that are unsafe on common filesystems and
    makes sure the result carries an image extension.
    """
    filename = (filename or "").strip()
    if not filename:
        filename = urlsplit(image_url).path.rsplit("/", 1)[-1]
    filename = UNSAFE_CHARS.sub("_", filename)
    if not filename:
        filename = "cover"
    if Path(filename).suffix.lower() not in IMAGE_EXTENSIONS:
        filename += ".jpg"
    return filename


def fix_ext_by_content_type(filename: str, content_type: str | None) -> str:
    content_type = content_type or ""
    stem = filename[: -len(Path(filename).suffix)] if Path(filename).suffix else filename
    if "png" in content_type and not filename.endswith(".png"):
        return stem + ".png"
    if "webp" in content_type and not filename.endswith(".webp"):
        return stem + ".webp"
    return filename


def unique_filename(directory: Path, filename: str) -> str:
    """Return ``filename`` or the first free ``name_N.ext`` variant in ``directory``."""
    if not (directory / filename).exists():
        return filename
    path = Path(filename)
    stem, ext = path.stem, path.suffix
    for n in range(1, 10000):
        candidate = f"{stem}_{n}{ext}"
        if not (directory / candidate).exists():
            return candidate
    return f"{stem}_{time.time_ns()}{ext}"


class CoverStore:
    """Local cover image directory served under /covers."""

    def __init__(self, base_dir: Path):
        self.directory = Path(base_dir) / COVERS_DIR_NAME

    def ensure_dir(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def _result(self, filename: str, size: int) -> DownloadResult:
        return DownloadResult(filename=filename, path=f"{COVERS_DIR_NAME}/{filename}", size=size)

    def list_files(self) -> list[str]:
        """Image files in the covers directory, sorted case-insensitively."""
        if not self.directory.is_dir():
            return []
        files = [
            p.name for p in self.directory.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
        ]
        return sorted(files, key=str.lower)

    def find_existing(self, filename: str) -> DownloadResult | None:
        path = self.directory / filename
        if path.is_file():
            return self._result(filename, path.stat().st_size)
        return None

    def save(self, filename: str, data: bytes, content_type: str | None = None) -> DownloadResult:
        """Write a downloaded image, adjusting its extension and never overwriting an existing file."""
        if content_type is not None:
            filename = fix_ext_by_content_type(filename, content_type)
        self.ensure_dir()
        filename = unique_filename(self.directory, filename)
        (self.directory / filename).write_bytes(data)
        logger.info(f"Saved cover {filename} ({len(data)} bytes)")
        return self._result(filename, len(data))

    def save_upload(self, filename: str, data: bytes) -> DownloadResult:
        name = Path(filename or "").name
        if Path(name).suffix.lower() not in IMAGE_EXTENSIONS:
            raise BadRequestError("Unsupported image format")
        if len(data) > MAX_UPLOAD_BYTES:
            raise BadRequestError("File too large")
        return self.save(name, data)
