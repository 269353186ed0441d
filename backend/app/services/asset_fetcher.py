"""
Remote Asset Fetcher - downloads project images for the portfolio export
"""

from typing import Optional

import httpx

from app.core.config import settings
from app.core.exceptions import AssetFetchError, AssetUnavailableError
from app.core.logging_config import logger


class RemoteAssetFetcher:
    """
    Single-attempt HTTP(S) download of one image.

    Every call is independent, so one fetcher can be shared by any number of
    concurrent requests. Ordering across calls is the caller's concern.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.ASSET_FETCH_TIMEOUT_SECONDS
        # Injected in tests (httpx.MockTransport)
        self._transport = transport

    async def fetch(self, url: str) -> bytes:
        """
        Return the full response body for `url`.

        Raises:
            AssetUnavailableError: non-2xx status
            AssetFetchError: connection/DNS/TLS failure, timeout or bad URL
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.warning(f"[AssetFetcher] Network error for {url}: {type(e).__name__}: {e}")
            raise AssetFetchError(url, e) from e
        except httpx.InvalidURL as e:
            logger.warning(f"[AssetFetcher] Invalid URL {url!r}: {e}")
            raise AssetFetchError(url, e) from e

        if not response.is_success:
            logger.warning(f"[AssetFetcher] HTTP {response.status_code} for {url}")
            raise AssetUnavailableError(url, response.status_code)

        logger.debug(f"[AssetFetcher] Fetched {len(response.content)} bytes from {url}")
        return response.content


# Shared instance used by the API layer
asset_fetcher = RemoteAssetFetcher()
