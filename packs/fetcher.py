"""Remote fetching for pack archives and manifests.

Uses httpx with automatic redirects disabled; redirects are followed here so
the hop limit is enforced the same way for every request.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
MAX_REDIRECTS = 5
USER_AGENT = "projecthub/1.0"


class FetchError(Exception):
    """Raised when a remote resource cannot be fetched."""

    pass


class TooManyRedirectsError(FetchError):
    """Raised when a request is redirected more times than allowed."""

    pass


class RemoteFetcher:
    """HTTP GET client with a bounded redirect chain.

    Example:
        >>> fetcher = RemoteFetcher()
        >>> scratch = await fetcher.download_to_scratch("https://example.com/pack.zip")
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_redirects: int = MAX_REDIRECTS,
        user_agent: str = USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the fetcher.

        Args:
            timeout: Per-request timeout in seconds.
            max_redirects: Redirects followed before giving up.
            user_agent: User-Agent header sent with every request.
            transport: Optional httpx transport (used by tests).
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.user_agent = user_agent
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=False,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    @asynccontextmanager
    async def _open(
        self, client: httpx.AsyncClient, url: str
    ) -> AsyncIterator[httpx.Response]:
        """Stream the final response of ``url`` after following redirects."""
        current = url
        for _ in range(self.max_redirects + 1):
            async with client.stream("GET", current) as response:
                if response.is_redirect:
                    location = response.headers.get("location")
                    if not location:
                        raise FetchError(f"Redirect without location from {current}")
                    current = str(response.url.join(location))
                    logger.debug("Following redirect to %s", current)
                    continue
                if not response.is_success:
                    raise FetchError(f"HTTP {response.status_code} fetching {current}")
                yield response
                return
        raise TooManyRedirectsError(f"Too many redirects (more than {self.max_redirects}) for {url}")

    async def download(self, url: str, destination: Path) -> Path:
        """Stream ``url`` into ``destination``.

        Raises:
            TooManyRedirectsError: If the redirect limit is exceeded.
            FetchError: On transport errors, malformed URLs or a non-2xx final response.
        """
        try:
            async with self._client() as client:
                async with self._open(client, url) as response:
                    size = 0
                    f = await asyncio.to_thread(open, destination, "wb")
                    try:
                        async for chunk in response.aiter_bytes():
                            await asyncio.to_thread(f.write, chunk)
                            size += len(chunk)
                    finally:
                        await asyncio.to_thread(f.close)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Failed to fetch {url}: {e}")

        logger.info("Downloaded %s (%d bytes)", url, size)
        return destination

    async def download_to_scratch(self, url: str) -> Path:
        """Download ``url`` to a new scratch file and return its path.

        The caller owns the file and must delete it. On failure the scratch
        file is removed before the error propagates.
        """
        fd, name = tempfile.mkstemp(prefix="projecthub-pack-", suffix=".zip")
        os.close(fd)
        scratch = Path(name)
        try:
            return await self.download(url, scratch)
        except BaseException:
            scratch.unlink(missing_ok=True)
            raise

    async def get_json(self, url: str) -> Any:
        """Fetch ``url`` and decode its JSON body.

        Raises:
            FetchError: On transport errors, non-2xx responses or invalid JSON.
        """
        try:
            async with self._client() as client:
                async with self._open(client, url) as response:
                    await response.aread()
                    return response.json()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Failed to fetch {url}: {e}")
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url}: {e}")
