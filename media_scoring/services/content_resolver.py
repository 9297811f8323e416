"""Content resolver: choose the text to analyze for one input row.

Priority:
1. Body column (正文 / Content)
2. Raw title column (标题 / Title), never the 无标题 placeholder
3. One best-effort fetch through the content proxy when the row carries an
   http(s) URL

The resolver never raises; a failed fetch resolves to "".
"""

from media_scoring.core.logging import get_logger
from media_scoring.integrations.content_proxy import ContentProxyClient
from media_scoring.utils.row_extraction import RowFields

logger = get_logger(__name__)

FETCHABLE_SCHEMES = ("http://", "https://")


class ContentResolver:
    """Resolves analyzable text for a row."""

    def __init__(self, proxy: ContentProxyClient | None) -> None:
        self._proxy = proxy

    async def resolve(self, fields: RowFields) -> str:
        """Return the text to analyze for fields, or "" when none is available."""
        if fields.content:
            return fields.content
        if fields.title:
            return fields.title

        url = fields.url
        if not url.startswith(FETCHABLE_SCHEMES):
            return ""

        if self._proxy is None:
            logger.debug(
                "No content proxy configured, skipping fetch",
                extra={"target_url": url[:200]},
            )
            return ""

        text = await self._proxy.fetch_text(url)
        return text or ""
