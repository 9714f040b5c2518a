"""
Slide Schema Validator

Structural admission of a recovered fragment: it must parse, and it must be
(or wrap, under ``slides``) a sequence. Individual slides are normalized
leniently; content quality is not judged here.
"""

import json
from typing import Any, List

from src.core.errors import ResponseParseError, SchemaError
from src.models.slides import SlideRecord
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class SlideSchemaValidator:
    """Parses a fragment and admits it as an ordered list of SlideRecords."""

    def parse(self, fragment: str) -> Any:
        try:
            return json.loads(fragment)
        except json.JSONDecodeError as e:
            logger.error(
                f"Recovered fragment is not valid JSON: {e}",
                extra={"fragment_preview": fragment[:500]}
            )
            raise ResponseParseError(f"Invalid response JSON: {e}") from e

    def validate(self, parsed: Any) -> List[SlideRecord]:
        """
        Admit a parsed value as a slide sequence.

        A mapping with a ``slides`` field is unwrapped first. The input is
        never mutated; ``SlideRecord`` items pass through unchanged.

        Raises:
            SchemaError: The (unwrapped) value is not a list
        """
        candidate = parsed
        if isinstance(candidate, dict) and "slides" in candidate:
            candidate = candidate["slides"]

        if not isinstance(candidate, list):
            logger.error(
                "AI response is not a slide sequence",
                extra={"type": type(candidate).__name__}
            )
            raise SchemaError(
                f"Invalid response format: expected an array of slides, got {type(candidate).__name__}"
            )

        slides = [SlideRecord.from_raw(item) for item in candidate]
        logger.info(f"Validated {len(slides)} slides from AI response")
        return slides

    def parse_and_validate(self, fragment: str) -> List[SlideRecord]:
        return self.validate(self.parse(fragment))
