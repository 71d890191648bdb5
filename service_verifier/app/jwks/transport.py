"""
Outbound HTTP transport for key retrieval.
"""

from typing import Optional, Protocol

import httpx

from shared.logging import get_logger


class Transport(Protocol):
    """Fetch-by-URL capability used by the key resolver.

    Implementations raise ``httpx.HTTPError`` (or ``OSError``) on transport
    failures and non-2xx responses.
    """

    async def fetch(self, url: str) -> bytes:
        ...

    async def close(self) -> None:
        ...


class HttpxTransport:
    """Transport backed by a shared ``httpx.AsyncClient``."""

    def __init__(self, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        self.logger = get_logger("verifier.transport")

    async def fetch(self, url: str) -> bytes:
        response = await self._client.get(url)
        response.raise_for_status()
        self.logger.debug("Fetched URL", url=url, status_code=response.status_code)
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
