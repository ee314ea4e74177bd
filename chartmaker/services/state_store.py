import json
import threading
from pathlib import Path
from typing import Any

from loguru import logger

from chartmaker.core.constants import STATE_FILE_NAME
from chartmaker.core.exceptions import BadRequestError


class StateStoreError(Exception):
    """The state file exists but cannot be read back as JSON."""


class StateStore:
    """The grid layout persisted as a single JSON document."""

    def __init__(self, base_dir: Path):
        self.path = Path(base_dir) / STATE_FILE_NAME
        self._lock = threading.Lock()

    def ensure_file(self) -> None:
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("{}\n", encoding="utf-8")
            logger.info(f"Created empty state file at {self.path}")

    def load(self) -> Any:
        with self._lock:
            try:
                raw = self.path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return {}
        if not raw.strip():
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StateStoreError(f"{self.path.name} is not valid JSON") from e

    def save(self, raw_body: bytes) -> None:
        try:
            data = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BadRequestError("Request body is not valid JSON") from e

        formatted = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        with self._lock:
            self.path.write_text(formatted, encoding="utf-8")
