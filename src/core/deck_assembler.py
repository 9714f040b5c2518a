"""
Deck Assembler

Concatenates AI slides and image slides into the final Deck and stamps the
generation metadata.
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from src.core.errors import EmptyDeckError
from src.models.slides import Deck, DeckMetadata, SlideRecord
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class AssemblyInputs:
    """Request facts the metadata is built from."""
    topic: str
    backend_used: str
    started_at: float
    source_text: Optional[str] = None
    image_count: int = 0


class DeckAssembler:
    """Builds a Deck. Time is read from an injectable monotonic clock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock

    def start(self) -> float:
        """Request start timestamp on this assembler's clock."""
        return self.clock()

    def assemble(
        self,
        ai_slides: List[SlideRecord],
        image_slides: List[SlideRecord],
        inputs: AssemblyInputs
    ) -> Deck:
        """
        Assemble the deck: AI slides in model order, then image slides.

        Raises:
            EmptyDeckError: Neither list contributed a slide
        """
        slides = list(ai_slides) + list(image_slides)
        if not slides:
            raise EmptyDeckError("Assembly produced no slides")

        if not ai_slides:
            logger.warning(
                "Deck contains only image slides",
                extra={"topic": inputs.topic, "image_slides": len(image_slides)}
            )

        elapsed_ms = max(0, int(round((self.clock() - inputs.started_at) * 1000)))

        metadata = DeckMetadata(
            topic=inputs.topic,
            backend_used=inputs.backend_used,
            slide_count=len(slides),
            image_slide_count=len(image_slides),
            generation_time_ms=elapsed_ms,
            has_source_document=bool(inputs.source_text),
            has_images=inputs.image_count > 0,
        )

        logger.info(
            f"Assembled deck with {len(slides)} slides ({len(image_slides)} image slides)",
            extra={"backend": inputs.backend_used, "generation_time_ms": elapsed_ms}
        )
        return Deck(slides=slides, metadata=metadata)
