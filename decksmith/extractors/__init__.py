"""Text extractors for uploaded documents."""

from typing import Optional

from decksmith.errors import ExtractionError
from decksmith.extractors.base import BaseExtractor
from decksmith.extractors.docx_extractor import DocxExtractor
from decksmith.extractors.pdf_extractor import PdfExtractor
from decksmith.models import UploadedDocument

EXTRACTORS = {
    "pdf": PdfExtractor,
    "docx": DocxExtractor,
}


def get_extractor(document: UploadedDocument, page_yield_interval: Optional[int] = None) -> BaseExtractor:
    """Pick the extractor for a document by its extension."""
    extractor_cls = EXTRACTORS.get(document.extension)
    if extractor_cls is None:
        raise ExtractionError(
            f"No extractor for .{document.extension} files",
            user_message="Unsupported file type. Upload a PDF or DOCX file.",
        )
    if page_yield_interval is None:
        return extractor_cls()
    return extractor_cls(page_yield_interval=page_yield_interval)


__all__ = [
    "BaseExtractor",
    "PdfExtractor",
    "DocxExtractor",
    "EXTRACTORS",
    "get_extractor",
]
