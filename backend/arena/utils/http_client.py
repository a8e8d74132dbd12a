"""Async HTTP client with retry logic.

Used for outbound calls to the generative model API. Timeouts and network
errors are retried with exponential backoff; HTTP error statuses are not.
"""

import logging
from typing import Any

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_MIN_WAIT = 1  # seconds
DEFAULT_MAX_WAIT = 10  # seconds


class AsyncHttpClient:
    """Async HTTP client with retry logic and connection pooling.

    Usage:
        async with AsyncHttpClient() as client:
            data = await client.post_json("https://api.example.com/x", {"a": 1})
    """

    def __init__(
        self,
        timeout: float = 10.0,
        connect_timeout: float = 5.0,
        max_connections: int = 50,
        max_keepalive_connections: int = 10,
    ):
        self._timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self._limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AsyncHttpClient":
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            limits=self._limits,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the underlying httpx client."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")
        return self._client

    @retry(
        stop=stop_after_attempt(DEFAULT_MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=DEFAULT_MIN_WAIT, max=DEFAULT_MAX_WAIT),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def post(self, url: str, **kwargs) -> httpx.Response:
        """POST request with retry."""
        response = await self.client.post(url, **kwargs)
        response.raise_for_status()
        return response

    async def post_json(self, url: str, data: dict[str, Any], **kwargs) -> dict[str, Any]:
        """POST a JSON body and return the parsed JSON response."""
        response = await self.post(url, json=data, **kwargs)
        return response.json()


_global_client: AsyncHttpClient | None = None


async def get_http_client() -> AsyncHttpClient:
    """Get or create the shared HTTP client."""
    global _global_client
    if _global_client is None:
        _global_client = AsyncHttpClient()
        await _global_client.__aenter__()
    return _global_client


async def close_http_client() -> None:
    """Close the shared HTTP client."""
    global _global_client
    if _global_client:
        await _global_client.__aexit__(None, None, None)
        _global_client = None
