"""
Base extractor interface.
"""

import asyncio
from abc import ABC, abstractmethod

from decksmith.errors import ExtractionError
from decksmith.models import ExtractionResult, UploadedDocument

# Hand control back to the event loop every this many pages
PAGE_YIELD_INTERVAL = 2

EMPTY_DOCUMENT_MESSAGE = (
    "Document is empty or non-extractable: no text was found on any page. "
    "It may be a scanned or image-only file."
)


class BaseExtractor(ABC):
    """Abstract base class for all text extractors."""

    #: File extensions (without the dot) this extractor understands
    extensions: tuple = ()

    def __init__(self, page_yield_interval: int = PAGE_YIELD_INTERVAL):
        self.page_yield_interval = max(1, page_yield_interval)
        self.name = self.__class__.__name__.replace("Extractor", "").lower()

    @abstractmethod
    async def extract_pages(self, document: UploadedDocument) -> ExtractionResult:
        """
        Extract plain text from a document, one entry per source page.

        Args:
            document: The validated upload

        Returns:
            ExtractionResult with pages in source order

        Raises:
            ExtractionError: If the document cannot be decoded at all, or
                holds no text on any page
        """

    async def extract_all(self, document: UploadedDocument) -> str:
        """Extract the whole document as one string, pages separated by a blank line."""
        result = await self.extract_pages(document)
        return result.full_text

    async def _maybe_yield(self, page_number: int) -> None:
        if page_number % self.page_yield_interval == 0:
            await asyncio.sleep(0)

    @staticmethod
    def _ensure_text(pages: list) -> None:
        if not pages or not "".join(pages).strip():
            raise ExtractionError(EMPTY_DOCUMENT_MESSAGE)
