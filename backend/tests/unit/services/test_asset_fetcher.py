"""
Unit Tests for RemoteAssetFetcher
"""
import httpx
import pytest

from app.core.exceptions import AssetFetchError, AssetUnavailableError
from app.services.asset_fetcher import RemoteAssetFetcher


class TestFetch:
    """Single attempt download"""

    async def test_returns_body(self, mock_fetcher, image_server, make_png):
        data = make_png()
        image_server["https://img.test/ok.png"] = httpx.Response(200, content=data)

        assert await mock_fetcher.fetch("https://img.test/ok.png") == data

    async def test_not_found_is_unavailable(self, mock_fetcher):
        with pytest.raises(AssetUnavailableError) as exc_info:
            await mock_fetcher.fetch("https://img.test/missing.png")
        assert exc_info.value.http_status == 404
        assert "404" in exc_info.value.message

    async def test_server_error_is_unavailable(self, mock_fetcher, image_server):
        image_server["https://img.test/boom.png"] = httpx.Response(503)

        with pytest.raises(AssetUnavailableError) as exc_info:
            await mock_fetcher.fetch("https://img.test/boom.png")
        assert exc_info.value.http_status == 503

    async def test_connection_error(self, mock_fetcher, image_server):
        image_server["https://down.test/a.png"] = httpx.ConnectError("connection refused")

        with pytest.raises(AssetFetchError) as exc_info:
            await mock_fetcher.fetch("https://down.test/a.png")
        assert exc_info.value.url == "https://down.test/a.png"

    async def test_timeout(self, mock_fetcher, image_server):
        image_server["https://slow.test/a.png"] = httpx.ReadTimeout("timed out")

        with pytest.raises(AssetFetchError):
            await mock_fetcher.fetch("https://slow.test/a.png")

    async def test_single_attempt(self, mock_fetcher, image_server, fetched_urls):
        """Failures are not retried"""
        image_server["https://img.test/flaky.png"] = httpx.Response(500)

        with pytest.raises(AssetUnavailableError):
            await mock_fetcher.fetch("https://img.test/flaky.png")
        assert fetched_urls == ["https://img.test/flaky.png"]

    async def test_follows_redirects(self, mock_fetcher, image_server, make_png):
        data = make_png()
        image_server["https://img.test/old.png"] = httpx.Response(
            302, headers={"Location": "https://img.test/new.png"}
        )
        image_server["https://img.test/new.png"] = httpx.Response(200, content=data)

        assert await mock_fetcher.fetch("https://img.test/old.png") == data


class TestDefaults:

    def test_timeout_from_settings(self):
        from app.core.config import settings
        assert RemoteAssetFetcher().timeout == settings.ASSET_FETCH_TIMEOUT_SECONDS
