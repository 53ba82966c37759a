"""
Builders for real PDF/DOCX uploads and fakes for network collaborators.
"""

import io
from typing import List, Optional

import docx
import fitz  # PyMuPDF
from PIL import Image

from decksmith.errors import RenderError
from decksmith.models import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE, UploadedDocument
from decksmith.renderers.images import ImageClient
from decksmith.synthesizers.model import ModelClient


def make_pdf(pages: List[str]) -> bytes:
    """Build a PDF with one page per string (empty string = blank page)."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_textbox(fitz.Rect(72, 72, 540, 770), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def make_docx(paragraphs: List[str], table: Optional[List[List[str]]] = None) -> bytes:
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    out = io.BytesIO()
    document.save(out)
    return out.getvalue()


def make_png(width: int = 80, height: int = 60, color=(79, 70, 229)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (width, height), color).save(out, format="PNG")
    return out.getvalue()


def pdf_upload(pages: List[str], filename: str = "report.pdf") -> UploadedDocument:
    return UploadedDocument(data=make_pdf(pages), media_type=PDF_MEDIA_TYPE, filename=filename)


def docx_upload(paragraphs: List[str], filename: str = "notes.docx") -> UploadedDocument:
    return UploadedDocument(data=make_docx(paragraphs), media_type=DOCX_MEDIA_TYPE, filename=filename)


LONG_PAGE = (
    "Quarterly revenue grew by 18 percent compared with the previous year. "
    "Operating margin improved to 24 percent thanks to lower logistics costs. "
    "The company opened 12 new regional offices across three continents. "
    "Customer retention reached 91 percent, the highest level on record."
)


class FakeImageClient(ImageClient):
    """Returns a local PNG instead of calling the image endpoint."""

    def __init__(self, fail: bool = False):
        super().__init__(base_url="https://images.invalid/prompt")
        self.fail = fail
        self.urls: List[str] = []

    def fetch(self, url: str) -> bytes:
        self.urls.append(url)
        if self.fail:
            raise RenderError("Image request failed: connection refused")
        return make_png()


class FakeModelClient(ModelClient):
    """Replays scripted responses; an Exception instance is raised instead of returned."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = 0
        self.prompts: List[str] = []

    async def generate_json(self, prompt, schema, system_instruction=None):
        self.calls += 1
        self.prompts.append(prompt)
        response = self.responses[min(self.calls, len(self.responses)) - 1]
        if isinstance(response, BaseException):
            raise response
        return response


async def no_sleep(seconds: float) -> None:
    return None


