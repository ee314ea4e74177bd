from typing import Any

import httpx
from loguru import logger

from chartmaker.core.constants import REQUEST_TIMEOUT_SECONDS
from chartmaker.core.exceptions import UpstreamError


class BaseClient:
    """
    Base asynchronous HTTP client with error translation and logging.

    httpx errors never escape this class: transport problems and non-success
    statuses are raised as ``UpstreamError`` (or whatever ``_check_status``
    decides for a given integration). No retries are performed.
    """

    name = "Upstream"

    def __init__(
        self,
        base_url: str = "",
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx.AsyncClient instance."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        client = await self.get_client()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{self.name} request timed out ({method} {url}): {e}")
            raise UpstreamError(f"{self.name} API request timed out") from e
        except httpx.RequestError as e:
            logger.warning(f"{self.name} request failed ({method} {url}): {e}")
            raise UpstreamError(f"{self.name} API request failed: {e}") from e

        self._check_status(response)
        return response

    def _check_status(self, response: httpx.Response) -> None:
        """Raise for a non-success response. Integrations override to refine the mapping."""
        if response.is_success:
            return
        raise UpstreamError(f"{self.name} API error {response.status_code}", status_code=response.status_code)

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Failed to decode upstream response: {e}") from e

    async def get(self, url: str, params: dict[str, Any] | None = None, **kwargs) -> Any:
        """Perform a GET request and return the JSON response."""
        response = await self._request("GET", url, params=params, **kwargs)
        return self._decode_json(response)

    async def post(self, url: str, json: Any = None, **kwargs) -> Any:
        """Perform a POST request and return the JSON response."""
        response = await self._request("POST", url, json=json, **kwargs)
        return self._decode_json(response)

    async def post_raw(self, url: str, content: bytes, **kwargs) -> bytes:
        """POST an already-encoded JSON body and return the raw response bytes."""
        headers = {"Content-Type": "application/json", **kwargs.pop("headers", {})}
        response = await self._request("POST", url, content=content, headers=headers, **kwargs)
        return response.content

    async def fetch(self, url: str, **kwargs) -> httpx.Response:
        """GET an absolute URL (e.g. an image) and return the response."""
        return await self._request("GET", url, **kwargs)
