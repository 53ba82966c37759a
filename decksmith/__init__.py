"""
decksmith: Turn PDF and DOCX documents into themed PowerPoint decks.

Text is extracted page by page, structured into executive, creative and
technical slide decks by a generative model (or an offline heuristic), and
rendered to .pptx with python-pptx.
"""

__version__ = "0.1.0"
__author__ = "decksmith Team"

from decksmith.models import ConversionJob, SlideDeckVariant, SlideRecord, UploadedDocument
from decksmith.pipeline import DeckPipeline

__all__ = [
    "ConversionJob",
    "SlideDeckVariant",
    "SlideRecord",
    "UploadedDocument",
    "DeckPipeline",
]
