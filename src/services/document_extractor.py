"""
Document Extractor

Pulls plain text and embedded images out of uploaded source documents.

Supported formats:
- .txt: UTF-8 text, no images
- .pdf: page text and embedded image XObjects (pypdf)
- .docx: paragraph text and image parts (python-docx)

Every image is measured with Pillow. JPEG and PNG bytes are kept as-is;
anything else is re-encoded to PNG. An unreadable image is logged and
skipped; an unreadable document raises DocumentError.
"""

import io
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Union

from PIL import Image, UnidentifiedImageError
from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from src.core.errors import DocumentError
from src.models.slides import ExtractedImage
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

_PIL_MIME_TYPES = {"JPEG": "image/jpeg", "PNG": "image/png"}


@dataclass
class DocumentExtraction:
    """Text and images recovered from one document."""
    text: str = ""
    images: List[ExtractedImage] = field(default_factory=list)


class DocumentExtractor(Protocol):
    def extract(self, path: Union[str, Path]) -> DocumentExtraction:
        ...


def normalize_image(data: bytes) -> Optional[ExtractedImage]:
    """
    Measure an image and coerce it to JPEG or PNG.

    Returns None when Pillow cannot read the bytes or the image is empty.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            mime_type = _PIL_MIME_TYPES.get(image.format)
            if mime_type is None:
                buffer = io.BytesIO()
                converted = image if image.mode in ("RGB", "RGBA", "L", "LA", "P") else image.convert("RGBA")
                converted.save(buffer, format="PNG")
                data = buffer.getvalue()
                mime_type = "image/png"
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"Skipping unreadable image: {e}")
        return None

    if width <= 0 or height <= 0:
        return None
    return ExtractedImage(data=data, width=width, height=height, mime_type=mime_type)


class FileDocumentExtractor:
    """Default extractor, dispatching on file extension."""

    def extract(self, path: Union[str, Path]) -> DocumentExtraction:
        path = Path(path)
        suffix = path.suffix.lower()

        logger.info(f"Extracting content from {path.name}")

        if suffix == ".txt":
            extraction = self._extract_text_file(path)
        elif suffix == ".pdf":
            extraction = self._extract_pdf(path)
        elif suffix == ".docx":
            extraction = self._extract_docx(path)
        else:
            raise DocumentError(
                f"Unsupported document type: {suffix}",
                user_message="Invalid file type. Only PDF, DOCX and TXT files are allowed."
            )

        logger.info(
            f"Extracted {len(extraction.text)} chars and {len(extraction.images)} images",
            extra={"file": path.name}
        )
        return extraction

    def _extract_text_file(self, path: Path) -> DocumentExtraction:
        try:
            return DocumentExtraction(text=path.read_text(encoding="utf-8", errors="replace"))
        except OSError as e:
            raise DocumentError(f"Cannot read {path.name}: {e}") from e

    def _extract_pdf(self, path: Path) -> DocumentExtraction:
        try:
            reader = PdfReader(str(path))
            pages_text = []
            images = []
            for page_number, page in enumerate(reader.pages, start=1):
                text = page.extract_text()
                if text:
                    pages_text.append(text)
                images.extend(self._pdf_page_images(page, page_number))
        except (PdfReadError, OSError, ValueError) as e:
            raise DocumentError(f"Cannot read PDF {path.name}: {e}") from e

        return DocumentExtraction(text="\n\n".join(pages_text), images=images)

    def _pdf_page_images(self, page, page_number: int) -> List[ExtractedImage]:
        images = []
        try:
            page_images = list(page.images)
        except (PdfReadError, OSError, ValueError, KeyError) as e:
            logger.warning(f"Cannot list images on page {page_number}: {e}")
            return images

        for image_file in page_images:
            image = normalize_image(image_file.data)
            if image is not None:
                images.append(image)
        return images

    def _extract_docx(self, path: Path) -> DocumentExtraction:
        try:
            document = Document(str(path))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, OSError) as e:
            raise DocumentError(f"Cannot read DOCX {path.name}: {e}") from e

        paragraphs = [p.text for p in document.paragraphs if p.text.strip()]

        images = []
        for rel in document.part.rels.values():
            if rel.is_external or "image" not in rel.reltype:
                continue
            image = normalize_image(rel.target_part.blob)
            if image is not None:
                images.append(image)

        return DocumentExtraction(text="\n\n".join(paragraphs), images=images)
