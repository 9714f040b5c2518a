"""
Models Package for Slidesmith

Contains the pydantic models for slides, decks and API payloads.
"""

from .slides import (
    ExtractedImage,
    ImagePayload,
    MarkupContent,
    TableContent,
    ChartDataset,
    ChartContent,
    ImageGalleryContent,
    SlideContent,
    SlideRecord,
    DeckMetadata,
    Deck
)

from .api import (
    ImageAttribution,
    ImageSearchResult,
    ErrorResponse
)

__all__ = [
    # Slides
    'ExtractedImage',
    'ImagePayload',
    'MarkupContent',
    'TableContent',
    'ChartDataset',
    'ChartContent',
    'ImageGalleryContent',
    'SlideContent',
    'SlideRecord',
    'DeckMetadata',
    'Deck',

    # API payloads
    'ImageAttribution',
    'ImageSearchResult',
    'ErrorResponse',
]
