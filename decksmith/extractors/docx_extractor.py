"""
DOCX text extraction using python-docx.
"""

import io
from typing import List

import docx

from decksmith.errors import ExtractionError
from decksmith.extractors.base import BaseExtractor
from decksmith.models import ExtractionResult, UploadedDocument
from decksmith.utils.logging import get_logger

logger = get_logger(__name__)


class DocxExtractor(BaseExtractor):
    """
    Extract body text from a Word document.

    DOCX has no fixed pagination, so the whole body (paragraphs, then table
    cells) comes back as a single page.
    """

    extensions = ("docx",)

    async def extract_pages(self, document: UploadedDocument) -> ExtractionResult:
        try:
            word_doc = docx.Document(io.BytesIO(document.data))
        except Exception as e:
            logger.error(f"Failed to open DOCX {document.filename}: {e}")
            raise ExtractionError(
                f"Failed to read DOCX {document.filename}: {e}",
                user_message="Failed to read the DOCX file. It might be corrupted or protected.",
            ) from e

        lines: List[str] = [p.text for p in word_doc.paragraphs if p.text.strip()]
        for table in word_doc.tables:
            for row in table.rows:
                cells = []
                seen = []
                for cell in row.cells:
                    # A merged cell is returned once per grid column it spans
                    if any(cell._tc is tc for tc in seen):
                        continue
                    seen.append(cell._tc)
                    text = cell.text.strip()
                    if text:
                        cells.append(text)
                if cells:
                    lines.append(" | ".join(cells))

        text = "\n".join(lines)
        await self._maybe_yield(1)
        self._ensure_text([text])

        logger.info(f"Extracted {len(lines)} paragraphs from {document.filename}")
        return ExtractionResult(pages=[text], page_count=1)
