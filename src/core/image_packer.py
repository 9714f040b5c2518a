"""
Image Consolidator

Groups persisted document images onto synthetic image slides, largest first.
"""

from typing import List, Sequence

from src.models.slides import ImagePayload, SlideRecord

DEFAULT_MAX_PER_SLIDE = 4

FIRST_SLIDE_TITLE = "Visuals from Source Document"
OVERFLOW_SLIDE_TITLE = "Additional Visuals"


def pack_image_slides(
    images: Sequence[ImagePayload],
    max_per_slide: int = DEFAULT_MAX_PER_SLIDE
) -> List[SlideRecord]:
    """
    Pack images onto image slides.

    Images are sorted by area, descending, with ties keeping their
    extraction order, then chunked sequentially. The first slide is titled
    "Visuals from Source Document", every later one "Additional Visuals".

    Args:
        images: Persisted images in extraction order
        max_per_slide: Images per slide

    Returns:
        Image slides; empty when there are no images
    """
    if max_per_slide < 1:
        raise ValueError(f"max_per_slide must be at least 1, got {max_per_slide}")

    ordered = sorted(images, key=lambda image: image.area, reverse=True)

    slides = []
    for offset in range(0, len(ordered), max_per_slide):
        title = FIRST_SLIDE_TITLE if offset == 0 else OVERFLOW_SLIDE_TITLE
        slides.append(SlideRecord.image_slide(title, ordered[offset:offset + max_per_slide]))
    return slides
