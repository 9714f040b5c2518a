"""
Image Search Service

Finds an illustrative stock photo for a slide's image query. Checks run in a
fixed order: query present, provider configured, rate gate, provider call.
"""

from typing import Optional

from src.clients.unsplash_client import UnsplashClient
from src.core.errors import ImageNotFoundError, ImageServiceNotConfiguredError, InvalidRequestError
from src.models.api import ImageAttribution, ImageSearchResult
from src.utils.logger import setup_logger
from src.utils.rate_limit_gate import RateLimitGate

logger = setup_logger(__name__)


class ImageSearchService:
    """
    Rate-limited image search.

    The gate is shared by every caller of this instance; main.py keeps one
    instance per process.
    """

    def __init__(self, client: Optional[UnsplashClient], gate: RateLimitGate):
        self.client = client
        self.gate = gate

    @classmethod
    def from_settings(cls, settings) -> "ImageSearchService":
        client = None
        if settings.UNSPLASH_ACCESS_KEY:
            client = UnsplashClient(settings.UNSPLASH_ACCESS_KEY, timeout=settings.IMAGE_SEARCH_TIMEOUT)
        return cls(client, RateLimitGate(settings.IMAGE_SEARCH_THROTTLE_SECONDS))

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def search(self, query: Optional[str]) -> ImageSearchResult:
        """
        Raises:
            InvalidRequestError: Missing query (400)
            ImageServiceNotConfiguredError: No access key (503)
            RateLimitedError: Inside the throttle window (429)
            ImageNotFoundError: Provider had no result (404)
            ImageSearchError: Provider failure (500)
        """
        query = (query or "").strip()
        if not query:
            raise InvalidRequestError("Missing query parameter", user_message="Missing query parameter.")

        if self.client is None:
            logger.warning("Unsplash API key not configured")
            raise ImageServiceNotConfiguredError("UNSPLASH_ACCESS_KEY is not set")

        self.gate.try_acquire()

        photo = await self.client.search_photo(query)
        image_url = ((photo or {}).get("urls") or {}).get("regular")
        if not image_url:
            logger.info(f"No image found for query: '{query}'")
            raise ImageNotFoundError(f"No result for {query!r}")

        user = photo.get("user")
        attribution = None
        if isinstance(user, dict):
            attribution = ImageAttribution(
                name=user.get("name"),
                username=user.get("username"),
                link=(user.get("links") or {}).get("html"),
            )

        logger.info("Image found and returned", extra={"query": query})
        return ImageSearchResult(image_url=image_url, attribution=attribution)
