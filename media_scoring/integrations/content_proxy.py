"""Content proxy client: fetch the readable text of a remote article.

A target URL is appended to the proxy prefix (r.jina.ai by default), which
returns the page as plain text/markdown.

Fetches are best-effort:
- One GET, no retry
- Timeouts, network errors, non-2xx responses and empty bodies yield None
- Every failure is logged; nothing is raised to the caller
"""

import time

import httpx

from media_scoring.core.config import get_settings
from media_scoring.core.logging import content_fetch_logger, get_logger

logger = get_logger(__name__)


class ContentFetchError(Exception):
    """Raised internally when a remote content fetch fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ContentProxyClient:
    """Async client for the URL-to-text content proxy."""

    def __init__(
        self,
        proxy_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()

        self._proxy_url = proxy_url or settings.content_proxy_url
        self._timeout = timeout or settings.content_fetch_timeout

        # HTTP client (created lazily)
        self._client: httpx.AsyncClient | None = None

    @property
    def proxy_url(self) -> str:
        """Get the proxy prefix."""
        return self._proxy_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        logger.info("Content proxy client closed")

    async def _fetch(self, url: str) -> str:
        """Fetch text for url through the proxy.

        Raises:
            ContentFetchError: On timeout, network error, non-2xx or empty body.
        """
        client = await self._get_client()
        try:
            response = await client.get(f"{self._proxy_url}{url}")
        except httpx.TimeoutException as e:
            raise ContentFetchError(
                f"Content fetch timed out after {self._timeout}s"
            ) from e
        except httpx.RequestError as e:
            raise ContentFetchError(f"Content fetch failed: {e}") from e

        if not response.is_success:
            raise ContentFetchError(
                f"Content proxy returned {response.status_code}",
                status_code=response.status_code,
            )

        text = response.text.strip()
        if not text:
            raise ContentFetchError(
                "Content proxy returned an empty body",
                status_code=response.status_code,
            )
        return text

    async def fetch_text(self, url: str) -> str | None:
        """Fetch the readable text of url, or None on any failure."""
        start_time = time.monotonic()
        content_fetch_logger.fetch_start(url)

        try:
            text = await self._fetch(url)
        except ContentFetchError as e:
            content_fetch_logger.fetch_failure(
                url,
                (time.monotonic() - start_time) * 1000,
                str(e),
                type(e).__name__,
                status_code=e.status_code,
            )
            return None

        content_fetch_logger.fetch_success(
            url, (time.monotonic() - start_time) * 1000, len(text)
        )
        return text


# Global content proxy client instance
content_proxy_client: ContentProxyClient | None = None


async def init_content_proxy() -> ContentProxyClient:
    """Initialize the global content proxy client."""
    global content_proxy_client
    if content_proxy_client is None:
        content_proxy_client = ContentProxyClient()
        logger.info(
            "Content proxy client initialized",
            extra={"proxy_url": content_proxy_client.proxy_url},
        )
    return content_proxy_client


async def close_content_proxy() -> None:
    """Close the global content proxy client."""
    global content_proxy_client
    if content_proxy_client:
        await content_proxy_client.close()
        content_proxy_client = None


async def get_content_proxy() -> ContentProxyClient:
    """Dependency for getting the content proxy client."""
    global content_proxy_client
    if content_proxy_client is None:
        await init_content_proxy()
    return content_proxy_client  # type: ignore[return-value]
