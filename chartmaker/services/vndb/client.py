import httpx

from chartmaker.core.base_client import BaseClient
from chartmaker.core.constants import REQUEST_TIMEOUT_SECONDS
from chartmaker.core.exceptions import BadRequestError, UpstreamError
from chartmaker.core.version import __version__

VNDB_BASE_URL = "https://api.vndb.org/kana"
VNDB_USER_AGENT = f"ChartMaker/{__version__} (https://github.com/Aytrw/otaku-chart-maker)"


class VNDBClient(BaseClient):
    """
    Client for the VNDB Kana v2 API.

    The token is only attached to requests that pass ``auth_headers()``.
    """

    name = "VNDB"

    def __init__(
        self,
        token: str = "",
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {
            "User-Agent": VNDB_USER_AGENT,
            "Accept": "application/json",
        }
        super().__init__(base_url=VNDB_BASE_URL, timeout=timeout, headers=headers, transport=transport)
        self.token = (token or "").strip()

    def set_token(self, token: str) -> None:
        self.token = (token or "").strip()

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Token {self.token}"} if self.token else {}

    def _check_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        status = response.status_code
        text = response.text.strip()
        message = text or f"VNDB API error {status}"
        if status == 400:
            raise BadRequestError(message)
        if status == 401:
            raise UpstreamError(f"VNDB authentication failed: {message}", status_code=status)
        if status == 429:
            raise UpstreamError(f"VNDB rate limit exceeded: {message}", status_code=status)
        raise UpstreamError(f"VNDB API error {status}: {text}" if text else message, status_code=status)
