"""
Core data models for decksmith.

Defines the slide-record JSON schema exchanged with the generative model,
the deck variants built from it, and the persisted ConversionJob record.
"""

import mimetypes
from enum import Enum
from pathlib import Path
from typing import List, Optional, Literal, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

DEFAULT_TITLE = "Untitled Slide"
DEFAULT_CATEGORY = "Section"
EMPTY_BULLET = "No extractable content on this page"

# Soft cap so a single bullet stays legible on a slide
MAX_BULLET_CHARS = 400

ThemeName = Literal["executive", "creative", "minimal"]


class UploadedDocument(BaseModel):
    """A user-supplied file, as declared by the client."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., repr=False)
    media_type: str = ""
    filename: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        """Lower-cased extension without the dot ('' when there is none)."""
        suffix = Path(self.filename).suffix
        return suffix[1:].lower() if suffix else ""

    @classmethod
    def from_path(cls, path: Path, media_type: Optional[str] = None) -> "UploadedDocument":
        """Load a document from disk, guessing the media type from its name."""
        path = Path(path)
        if media_type is None:
            if path.suffix.lower() == ".docx":
                media_type = DOCX_MEDIA_TYPE
            else:
                media_type = mimetypes.guess_type(path.name)[0] or ""
        return cls(data=path.read_bytes(), media_type=media_type, filename=path.name)


class ExtractionResult(BaseModel):
    """Plain text per source page, in page order."""

    pages: List[str] = Field(default_factory=list)
    page_count: int = Field(ge=0, default=0)

    @model_validator(mode="after")
    def check_page_count(self) -> "ExtractionResult":
        if len(self.pages) != self.page_count:
            raise ValueError(
                f"page_count={self.page_count} does not match {len(self.pages)} extracted pages"
            )
        return self

    @property
    def full_text(self) -> str:
        return "\n\n".join(self.pages)


class DiagramType(str, Enum):
    """Visual treatment requested for a slide."""

    TEXT = "text"
    BAR_CHART = "bar_chart"
    PIE_CHART = "pie_chart"
    PROCESS_FLOW = "process_flow"
    TIMELINE = "timeline"


class SlideRecord(BaseModel):
    """
    One slide's worth of structured content.

    Field names on the wire follow the model's JSON schema (diagramType,
    imagePrompt); both spellings are accepted on input.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = DEFAULT_TITLE
    bullets: List[str] = Field(default_factory=list, validate_default=True)
    category: str = DEFAULT_CATEGORY
    diagram_type: DiagramType = Field(default=DiagramType.TEXT, alias="diagramType")
    image_prompt: str = Field(default="", alias="imagePrompt")

    @field_validator("title", mode="before")
    @classmethod
    def normalize_title(cls, v: Any) -> str:
        text = str(v).strip() if v is not None else ""
        return text or DEFAULT_TITLE

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> str:
        text = str(v).strip() if v is not None else ""
        return text or DEFAULT_CATEGORY

    @field_validator("bullets", mode="before")
    @classmethod
    def normalize_bullets(cls, v: Any) -> List[str]:
        if v is None:
            v = []
        elif isinstance(v, str):
            v = [v]
        bullets = []
        for item in v:
            text = str(item).strip() if item is not None else ""
            if text:
                bullets.append(text[:MAX_BULLET_CHARS])
        return bullets or [EMPTY_BULLET]

    @field_validator("diagram_type", mode="before")
    @classmethod
    def normalize_diagram_type(cls, v: Any) -> DiagramType:
        if isinstance(v, DiagramType):
            return v
        try:
            return DiagramType(str(v).strip().lower())
        except ValueError:
            return DiagramType.TEXT

    @field_validator("image_prompt", mode="before")
    @classmethod
    def normalize_image_prompt(cls, v: Any) -> str:
        return str(v).strip() if v is not None else ""

    @property
    def has_image(self) -> bool:
        return bool(self.image_prompt)

    @property
    def has_chart(self) -> bool:
        return self.diagram_type != DiagramType.TEXT


class DeckSet(BaseModel):
    """The three parallel decks produced from one source document."""

    model_config = ConfigDict(populate_by_name=True)

    executive_deck: List[SlideRecord] = Field(default_factory=list, alias="executiveDeck")
    creative_deck: List[SlideRecord] = Field(default_factory=list, alias="creativeDeck")
    technical_deck: List[SlideRecord] = Field(default_factory=list, alias="technicalDeck")

    @classmethod
    def uniform(cls, slides: List[SlideRecord]) -> "DeckSet":
        """Use the same slides for every deck."""
        return cls(
            executive_deck=list(slides),
            creative_deck=list(slides),
            technical_deck=list(slides),
        )


class SlideDeckVariant(BaseModel):
    """One exportable deck: a slide sequence plus its visual theme."""

    id: str
    name: str
    theme: ThemeName = "executive"
    color: str = "#4F46E5"
    slides: List[SlideRecord] = Field(default_factory=list)


class JobStatus(str, Enum):
    """Completion status of a conversion job."""

    COMPLETED = "Completed"
    PROCESSING = "Processing"
    FAILED = "Failed"


class ConversionJob(BaseModel):
    """The persisted record of one completed pipeline run."""

    id: str
    title: str
    original_filename: str
    page_count: int = Field(ge=0, default=0)
    status: JobStatus = JobStatus.COMPLETED
    timestamp: int = Field(..., description="Creation time, epoch milliseconds")
    thumbnail_url: Optional[str] = None
    preview_slides: List[str] = Field(default_factory=list)
    format: Literal["PPTX", "Google Slides", "Keynote"] = "PPTX"
    file_size: str = ""
    source: str = ""
    synthesis: Literal["model", "heuristic"] = "heuristic"
    variants: List[SlideDeckVariant] = Field(..., min_length=1, max_length=3)

    @property
    def primary_variant(self) -> Optional[SlideDeckVariant]:
        return self.variants[0] if self.variants else None

    def get_variant(self, variant_id: Optional[str] = None) -> Optional[SlideDeckVariant]:
        """Look up a variant by id; None selects the primary variant."""
        if variant_id is None:
            return self.primary_variant
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Export to dict for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversionJob":
        return cls.model_validate(data)


class RenderRequest(BaseModel):
    """A variant to render, plus the title of the document it came from."""

    variant: SlideDeckVariant
    source_title: str


class RenderedFile(BaseModel):
    """A rendered presentation, ready for download."""

    filename: str
    data: bytes = Field(..., repr=False)
    media_type: str = PPTX_MEDIA_TYPE
    slide_count: int = 0

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class ValidationResult(BaseModel):
    """Outcome of validating an upload."""

    accepted: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
