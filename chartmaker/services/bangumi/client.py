import httpx

from chartmaker.core.base_client import BaseClient
from chartmaker.core.constants import REQUEST_TIMEOUT_SECONDS
from chartmaker.core.version import __version__

BANGUMI_BASE_URL = "https://api.bgm.tv"
BANGUMI_USER_AGENT = f"ChartMaker/{__version__} (https://github.com/Aytrw/otaku-chart-maker)"


class BangumiClient(BaseClient):
    """
    Client for interacting with the Bangumi API.
    """

    name = "Bangumi"

    def __init__(self, timeout: float = REQUEST_TIMEOUT_SECONDS, transport: httpx.AsyncBaseTransport | None = None):
        headers = {
            "User-Agent": BANGUMI_USER_AGENT,
            "Accept": "application/json",
        }
        super().__init__(base_url=BANGUMI_BASE_URL, timeout=timeout, headers=headers, transport=transport)
