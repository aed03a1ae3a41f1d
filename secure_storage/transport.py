"""HttpTransport.

Raw byte passthrough over HTTP: the response body is returned exactly as
received and request bodies are sent untouched. The HTTP status is not
interpreted: error pages come back as bytes like any other body.
"""
import asyncio
import logging
from typing import Optional

import aiohttp

from .exceptions import TransportError

logger = logging.getLogger("secure_storage.transport")


class HttpTransport:
    """Thin aiohttp client for ``get_raw`` / ``post_raw``.

    The client session is created on first use and closed by ``close()``
    or when leaving the ``async with`` block.
    """

    def __init__(self, timeout: float = 30.0):
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_config(cls, config) -> "HttpTransport":
        return cls(timeout=config.http_timeout)

    def _client(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def _request(self, method: str, url: str, body: Optional[bytes] = None) -> bytes:
        try:
            async with self._client().request(method, url, data=body) as response:
                payload = await response.read()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise TransportError(f"{method} {url} failed: {err}") from err
        logger.debug(
            "%s %s -> HTTP %d, %d bytes", method, url, status, len(payload),
        )
        return payload

    async def get_raw(self, url: str) -> bytes:
        """Fetch ``url`` and return the raw response body."""
        return await self._request("GET", url)

    async def post_raw(self, url: str, body: bytes) -> bytes:
        """POST ``body`` to ``url`` and return the raw response body."""
        return await self._request("POST", url, bytes(body))

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
