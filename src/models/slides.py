"""
Slide and Deck Models for Slidesmith

A SlideRecord holds exactly one content variant, modelled as a pydantic
discriminated union on ``kind``. Backends return loosely shaped slide objects
(``html``, ``table``, ``chart``, ``image_query``); ``SlideRecord.from_raw``
maps those onto the union without rejecting missing fields.
"""

import base64
import re
from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

SUPPORTED_IMAGE_TYPES = {"image/jpeg": ".jpg", "image/png": ".png"}

_DATA_URI_RE = re.compile(r"^data:image/(jpeg|png);base64,")


@dataclass(frozen=True)
class ExtractedImage:
    """An image recovered from an uploaded document, before persistence."""

    data: bytes
    width: int
    height: int
    mime_type: str = "image/png"

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def extension(self) -> Optional[str]:
        """File extension for supported types, None otherwise."""
        return SUPPORTED_IMAGE_TYPES.get(self.mime_type)

    @classmethod
    def from_data_uri(cls, uri: str, width: int, height: int) -> Optional["ExtractedImage"]:
        """
        Build an image from a ``data:image/(jpeg|png);base64,`` URI.

        Returns None for any other media type.
        """
        match = _DATA_URI_RE.match(uri or "")
        if not match:
            return None
        payload = base64.b64decode(uri[match.end():])
        return cls(data=payload, width=width, height=height, mime_type=f"image/{match.group(1)}")


class ImagePayload(BaseModel):
    """A persisted image, addressable by URL."""

    url: str
    width: int
    height: int

    class Config:
        frozen = True

    @property
    def area(self) -> int:
        return self.width * self.height


class MarkupContent(BaseModel):
    """Free-form HTML block."""
    kind: Literal["markup"] = "markup"
    html: str = ""


class TableContent(BaseModel):
    """Structured table: header row plus data rows."""
    kind: Literal["table"] = "table"
    headers: List[str] = Field(default_factory=list)
    rows: List[List[Any]] = Field(default_factory=list)


class ChartDataset(BaseModel):
    label: str = ""
    data: List[Any] = Field(default_factory=list)


class ChartContent(BaseModel):
    """Chart definition: a chart type, category labels and one or more series."""
    kind: Literal["chart"] = "chart"
    chart_type: str = Field("bar", alias="chartType")
    labels: List[Any] = Field(default_factory=list)
    datasets: List[ChartDataset] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class ImageGalleryContent(BaseModel):
    """Images grouped onto one synthetic slide."""
    kind: Literal["images"] = "images"
    images: List[ImagePayload] = Field(default_factory=list)


SlideContent = Annotated[
    Union[MarkupContent, TableContent, ChartContent, ImageGalleryContent],
    Field(discriminator="kind")
]


class SlideRecord(BaseModel):
    """
    One slide of a deck.

    Exactly one content variant is populated. Image content only appears on
    slides synthesized from document images (is_image_slide=True).
    """

    title: Optional[str] = None
    content: SlideContent
    image_query: Optional[str] = Field(None, alias="imageQuery")
    is_image_slide: bool = Field(False, alias="isImageSlide")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def _images_only_on_image_slides(self) -> "SlideRecord":
        has_images = isinstance(self.content, ImageGalleryContent)
        if has_images != self.is_image_slide:
            raise ValueError("image content must appear exactly on image slides")
        return self

    @classmethod
    def image_slide(cls, title: str, images: List[ImagePayload]) -> "SlideRecord":
        return cls(title=title, content=ImageGalleryContent(images=list(images)), is_image_slide=True)

    @classmethod
    def from_raw(cls, raw: Any) -> "SlideRecord":
        """
        Map one backend slide object onto a SlideRecord.

        Never rejects an item for missing or oddly typed fields: structural
        admission happens on the sequence, not on individual slides.
        """
        if isinstance(raw, SlideRecord):
            return raw

        if not isinstance(raw, dict):
            return cls(content=MarkupContent(html="" if raw is None else str(raw)))

        # Already in serialized SlideRecord form. Image slides are only built
        # from document images, so backend items claiming one are remapped.
        content = raw.get("content")
        claims_image_slide = bool(raw.get("isImageSlide") or raw.get("is_image_slide"))
        if isinstance(content, dict) and "kind" in content \
                and content.get("kind") != "images" and not claims_image_slide:
            try:
                return cls.model_validate(raw)
            except ValidationError:
                # fall through to the lenient mapping
                pass

        title = raw.get("title") if isinstance(raw.get("title"), str) else None
        image_query = raw.get("image_query") or raw.get("imageQuery")
        image_query = image_query if isinstance(image_query, str) else None

        if isinstance(raw.get("table"), dict):
            body = _table_from_raw(raw["table"])
        elif isinstance(raw.get("chart"), dict):
            body = _chart_from_raw(raw["chart"])
        else:
            body = MarkupContent(html=_markup_from_raw(raw))

        return cls(title=title, content=body, image_query=image_query)


def _table_from_raw(table: Dict[str, Any]) -> TableContent:
    headers = table.get("headers") or []
    rows = table.get("rows") or []
    if not isinstance(headers, list):
        headers = [headers]
    if not isinstance(rows, list):
        rows = [rows]
    return TableContent(
        headers=[str(h) for h in headers],
        rows=[list(r) if isinstance(r, (list, tuple)) else [r] for r in rows],
    )


def _chart_from_raw(chart: Dict[str, Any]) -> ChartContent:
    data = chart.get("data") if isinstance(chart.get("data"), dict) else {}
    labels = data.get("labels") or []
    datasets = []
    for entry in data.get("datasets") or []:
        if not isinstance(entry, dict):
            continue
        values = entry.get("data") or []
        datasets.append(ChartDataset(
            label=str(entry.get("label") or ""),
            data=values if isinstance(values, list) else [values],
        ))
    chart_type = chart.get("type")
    return ChartContent(
        chart_type=chart_type if isinstance(chart_type, str) and chart_type else "bar",
        labels=labels if isinstance(labels, list) else [labels],
        datasets=datasets,
    )


def _markup_from_raw(raw: Dict[str, Any]) -> str:
    html = raw.get("html")
    if isinstance(html, str):
        return html
    content = raw.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, dict) and isinstance(content.get("html"), str):
        return content["html"]
    if isinstance(content, list):
        items = "".join(f"<li>{item}</li>" for item in content)
        return f"<ul>{items}</ul>"
    return ""


class DeckMetadata(BaseModel):
    topic: str
    backend_used: str = Field(..., alias="backendUsed")
    slide_count: int = Field(..., alias="slideCount")
    image_slide_count: int = Field(0, alias="imageSlideCount")
    generation_time_ms: int = Field(..., alias="generationTimeMs")
    has_source_document: bool = Field(False, alias="hasSourceDocument")
    has_images: bool = Field(False, alias="hasImages")

    class Config:
        populate_by_name = True
        frozen = True


class Deck(BaseModel):
    """The validated slide sequence plus generation metadata for one request."""

    slides: List[SlideRecord]
    metadata: DeckMetadata

    class Config:
        frozen = True

    def to_response(self) -> Dict[str, Any]:
        """Serialize with the camelCase field names used on the wire."""
        return self.model_dump(by_alias=True, mode="json")
