"""Unit tests for the content proxy client."""

from unittest.mock import AsyncMock

import httpx
import pytest

from media_scoring.integrations.content_proxy import ContentProxyClient


@pytest.fixture
def http_client() -> AsyncMock:
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def proxy(http_client: AsyncMock) -> ContentProxyClient:
    client = ContentProxyClient(proxy_url="https://r.jina.ai/", timeout=5)
    client._client = http_client
    return client


class TestFetchText:
    @pytest.mark.asyncio
    async def test_success(self, proxy: ContentProxyClient, http_client: AsyncMock) -> None:
        http_client.get.return_value = httpx.Response(200, text="  文章正文  \n")

        text = await proxy.fetch_text("https://news.example.cn/a?id=1")

        assert text == "文章正文"
        http_client.get.assert_awaited_once_with(
            "https://r.jina.ai/https://news.example.cn/a?id=1"
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [404, 500, 503])
    async def test_non_success_status(
        self, proxy: ContentProxyClient, http_client: AsyncMock, status_code: int
    ) -> None:
        http_client.get.return_value = httpx.Response(status_code, text="error page")

        assert await proxy.fetch_text("https://a.cn") is None

    @pytest.mark.asyncio
    async def test_empty_body(self, proxy: ContentProxyClient, http_client: AsyncMock) -> None:
        http_client.get.return_value = httpx.Response(200, text="   ")

        assert await proxy.fetch_text("https://a.cn") is None

    @pytest.mark.asyncio
    async def test_timeout(self, proxy: ContentProxyClient, http_client: AsyncMock) -> None:
        http_client.get.side_effect = httpx.ReadTimeout("slow")

        assert await proxy.fetch_text("https://a.cn") is None
        assert http_client.get.await_count == 1

    @pytest.mark.asyncio
    async def test_network_error(
        self, proxy: ContentProxyClient, http_client: AsyncMock
    ) -> None:
        http_client.get.side_effect = httpx.ConnectError("refused")

        assert await proxy.fetch_text("https://a.cn") is None

    @pytest.mark.asyncio
    async def test_close_releases_client(
        self, proxy: ContentProxyClient, http_client: AsyncMock
    ) -> None:
        await proxy.close()

        http_client.aclose.assert_awaited_once()
        assert proxy._client is None
