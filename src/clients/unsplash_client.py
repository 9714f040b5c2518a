"""
Unsplash Client for stock image search.

Wraps ``GET /search/photos`` and returns the first landscape result.
"""

from typing import Any, Dict, Optional

import httpx

from src.core.errors import ImageSearchError
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

UNSPLASH_API_URL = "https://api.unsplash.com"


class UnsplashClient:
    """
    Client for the Unsplash search API.

    Usage:
        client = UnsplashClient(access_key)
        photo = await client.search_photo("solar panels")
    """

    def __init__(
        self,
        access_key: str,
        timeout: float = 10.0,
        base_url: str = UNSPLASH_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            access_key: Unsplash application access key
            timeout: Request timeout in seconds
            base_url: API root override
            transport: httpx transport override (tests use httpx.MockTransport)
        """
        self.access_key = access_key
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Client-ID {self.access_key}",
            "Accept-Version": "v1",
        }

    async def search_photo(self, query: str) -> Optional[Dict[str, Any]]:
        """
        Search for one photo.

        Returns:
            The first result object, or None when nothing matched

        Raises:
            ImageSearchError: Transport failure, non-200 status or bad body
        """
        params = {
            "query": query,
            "per_page": 1,
            "orientation": "landscape",
            "content_filter": "high",
        }

        logger.info(f"Searching for image: '{query}'")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.base_url}/search/photos",
                    params=params,
                    headers=self._headers()
                )
        except httpx.HTTPError as e:
            logger.error(f"Cannot reach Unsplash: {e}", extra={"query": query})
            raise ImageSearchError(f"Unsplash request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                f"Unsplash API error: {response.status_code}",
                extra={"status_code": response.status_code, "query": query}
            )
            raise ImageSearchError(f"Unsplash API error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ImageSearchError(f"Unsplash returned invalid JSON: {e}") from e

        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            return None
        return results[0]
