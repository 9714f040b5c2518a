"""
API payload models for the HTTP surface.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ImageAttribution(BaseModel):
    """Photographer credit returned with a stock image."""
    name: Optional[str] = None
    username: Optional[str] = None
    link: Optional[str] = None


class ImageSearchResult(BaseModel):
    """Single illustrative image for a slide's image query."""
    image_url: str = Field(..., alias="imageUrl")
    attribution: Optional[ImageAttribution] = None

    class Config:
        populate_by_name = True


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""
    error: str = Field(..., description="Fixed caller-facing message for the error category")
    details: Optional[str] = Field(None, description="Exception text, only in DEBUG mode")
    retry_after: Optional[int] = Field(None, alias="retryAfter")

    class Config:
        populate_by_name = True

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
