"""
PDF text extraction using PyMuPDF.
"""

from typing import Dict, List

import fitz  # PyMuPDF

from decksmith.errors import ExtractionError
from decksmith.extractors.base import BaseExtractor
from decksmith.models import ExtractionResult, UploadedDocument
from decksmith.utils.logging import get_logger

logger = get_logger(__name__)

FAILED_PAGE_TEMPLATE = "[Page {number}: Text extraction failed]"


class PdfExtractor(BaseExtractor):
    """
    Extract page text from a PDF.

    Every positioned text span on a page is joined with single spaces. A page
    that fails to decode is replaced by a placeholder so the rest of the
    document still comes through.
    """

    extensions = ("pdf",)

    async def extract_pages(self, document: UploadedDocument) -> ExtractionResult:
        try:
            doc = fitz.open(stream=document.data, filetype="pdf")
        except Exception as e:
            logger.error(f"Failed to open PDF {document.filename}: {e}")
            raise ExtractionError(
                f"Failed to parse PDF {document.filename}: {e}",
                user_message="Failed to parse PDF. The file may be corrupted, encrypted, or not a valid PDF.",
            ) from e

        with doc:
            if doc.needs_pass:
                raise ExtractionError(
                    f"PDF {document.filename} is password protected",
                    user_message="This PDF is password protected. Remove the password and try again.",
                )
            if doc.page_count == 0:
                raise ExtractionError(f"PDF {document.filename} contains no pages")

            logger.info(f"Extracting text from {document.filename} ({doc.page_count} pages)")
            pages: List[str] = []
            for index in range(doc.page_count):
                number = index + 1
                try:
                    page = doc.load_page(index)
                    pages.append(self._page_text(page))
                except Exception as e:
                    logger.warning(f"Failed to extract text from page {number}: {e}")
                    pages.append(FAILED_PAGE_TEMPLATE.format(number=number))

                await self._maybe_yield(number)

        self._ensure_text(pages)
        failed = sum(1 for p in pages if p.startswith("[Page ") and p.endswith("Text extraction failed]"))
        if failed:
            logger.warning(f"{failed}/{len(pages)} pages could not be decoded")
        return ExtractionResult(pages=pages, page_count=len(pages))

    def _page_text(self, page: "fitz.Page") -> str:
        """Join the page's text spans, in reading order, with single spaces."""
        page_dict: Dict = page.get_text("dict", sort=True)
        runs = []
        for block in page_dict.get("blocks", []):
            if block.get("type") != 0:
                continue
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    text = span.get("text", "")
                    if text:
                        runs.append(text)
        return " ".join(runs)
