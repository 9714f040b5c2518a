"""
Deck Generator - the generation pipeline.

topic check -> backend selection -> document extraction -> source truncation
-> image persistence -> backend call (under deadline) -> fragment extraction
-> parse -> validate -> pack -> assemble.

Backend selection happens before any document work so a misconfigured
backend fails fast. If anything fails after images were persisted, the
request's image namespace is discarded.
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Union

from src.core.deck_assembler import AssemblyInputs, DeckAssembler
from src.core.errors import BackendTimeoutError, InvalidRequestError, SchemaError
from src.core.fragment_extractor import extract_structured_fragment
from src.core.image_packer import pack_image_slides
from src.core.slide_validator import SlideSchemaValidator
from src.models.slides import Deck, ImagePayload
from src.services.backend_registry import BackendRegistry
from src.services.document_extractor import DocumentExtraction, DocumentExtractor, FileDocumentExtractor
from src.storage.image_store import ImageStore
from src.utils.debug_capture import capture_backend_response
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

TRUNCATION_MARKER = "..."


def truncate_source(text: Optional[str], max_chars: int) -> Optional[str]:
    """Clip source text to ``max_chars`` characters, marking the cut."""
    if not text:
        return None
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


class DeckGenerator:
    """
    Orchestrates one deck generation request.

    Usage:
        generator = DeckGenerator.from_settings(settings)
        deck = await generator.generate("Solar power", "Gemini", document_path=None)
    """

    def __init__(
        self,
        settings,
        registry: BackendRegistry,
        image_store: ImageStore,
        extractor: Optional[DocumentExtractor] = None,
        validator: Optional[SlideSchemaValidator] = None,
        assembler: Optional[DeckAssembler] = None
    ):
        self.settings = settings
        self.registry = registry
        self.image_store = image_store
        self.extractor = extractor or FileDocumentExtractor()
        self.validator = validator or SlideSchemaValidator()
        self.assembler = assembler or DeckAssembler()

    @classmethod
    def from_settings(cls, settings) -> "DeckGenerator":
        return cls(
            settings,
            registry=BackendRegistry.from_settings(settings),
            image_store=ImageStore(settings.TEMP_IMAGE_DIR),
        )

    def check_topic(self, topic: Optional[str]) -> str:
        topic = (topic or "").strip()
        if not topic:
            raise InvalidRequestError("Topic is required", user_message="Topic is required.")
        limit = self.settings.TOPIC_MAX_LENGTH
        if len(topic) > limit:
            raise InvalidRequestError(
                f"Topic has {len(topic)} characters",
                user_message=f"Topic must be {limit} characters or less."
            )
        return topic

    def preflight(self, topic: Optional[str], backend: Optional[str]):
        """Check the topic and select the backend, before any document work."""
        return self.check_topic(topic), self.registry.get(backend)

    async def generate(
        self,
        topic: str,
        backend: str,
        document_path: Optional[Union[str, Path]] = None
    ) -> Deck:
        """
        Generate a deck.

        Args:
            topic: Presentation topic (1-TOPIC_MAX_LENGTH characters after trimming)
            backend: Backend name, e.g. "Gemini" or "LMStudio"
            document_path: Optional uploaded source document on disk

        Returns:
            The assembled Deck

        Raises:
            SlidesmithError: Any classified failure (see src/core/errors.py)
        """
        started_at = self.assembler.start()
        topic, adapter = self.preflight(topic, backend)

        extraction = DocumentExtraction()
        if document_path is not None:
            extraction = await asyncio.to_thread(self.extractor.extract, document_path)

        source_text = truncate_source(extraction.text, self.settings.SOURCE_TEXT_MAX_CHARS)

        logger.info(
            f"Generating deck for '{topic}' with {adapter.name}",
            extra={
                "backend": adapter.name,
                "source_chars": len(source_text or ""),
                "document_images": len(extraction.images)
            }
        )

        namespace = None
        images: List[ImagePayload] = []
        if extraction.images:
            namespace = self.image_store.new_namespace()

        try:
            if namespace:
                images = await self.image_store.persist_all(namespace, extraction.images)

            raw = await self._call_backend(adapter, topic, source_text)
            ai_slides = self._admit(raw, adapter.name, topic)
            image_slides = pack_image_slides(images, self.settings.MAX_IMAGES_PER_SLIDE)

            return self.assembler.assemble(
                ai_slides,
                image_slides,
                AssemblyInputs(
                    topic=topic,
                    backend_used=adapter.name,
                    started_at=started_at,
                    source_text=source_text,
                    image_count=len(images),
                )
            )
        except BaseException:
            if namespace:
                self.image_store.discard(namespace)
            raise

    async def _call_backend(self, adapter, topic: str, source_text: Optional[str]) -> str:
        try:
            return await asyncio.wait_for(adapter.generate(topic, source_text), timeout=adapter.request_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"{adapter.name} backend exceeded {adapter.request_timeout}s deadline")
            raise BackendTimeoutError(
                f"{adapter.name} backend did not respond within {adapter.request_timeout}s"
            ) from e

    def _admit(self, raw: str, backend: str, topic: str):
        fragment = None
        try:
            fragment = extract_structured_fragment(raw, strict=self.settings.STRICT_FRAGMENT_EXTRACTION)
            return self.validator.parse_and_validate(fragment)
        except SchemaError as e:
            logger.error(
                f"Rejected {backend} response: {e}",
                extra={"raw_response": raw[:2000]}
            )
            if self.settings.DEBUG:
                try:
                    path = capture_backend_response(
                        backend, topic, raw,
                        error=str(e), fragment=fragment,
                        capture_dir=self.settings.DEBUG_CAPTURE_DIR
                    )
                    logger.info(f"Saved debug capture to {path}")
                except OSError as capture_error:
                    logger.error(f"Could not write debug capture: {capture_error}")
            raise
