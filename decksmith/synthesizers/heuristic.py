"""
Offline, rule-based slide synthesis.

Each page becomes one slide whose bullets are the page's longer sentences.
Used when no model backend is configured or when the model call fails.
"""

import re
from typing import List, Optional, Sequence

from decksmith.models import (
    EMPTY_BULLET,
    DeckSet,
    DiagramType,
    ExtractionResult,
    SlideRecord,
)
from decksmith.synthesizers.base import Synthesizer
from decksmith.utils.logging import get_logger

logger = get_logger(__name__)

SENTENCE_SPLIT = re.compile(r"[.!?]\s+")
CHUNK_PATTERN = re.compile(r".{1,150}")

MIN_FRAGMENT_CHARS = 20
MAX_BULLET_CHARS = 150
MAX_BULLETS = 5
HEURISTIC_CATEGORY = "Content"


def page_to_bullets(text: str) -> List[str]:
    bullets = [
        fragment.strip()[:MAX_BULLET_CHARS]
        for fragment in SENTENCE_SPLIT.split(text)
        if len(fragment.strip()) > MIN_FRAGMENT_CHARS
    ][:MAX_BULLETS]

    if not bullets:
        # Nothing sentence-like: fall back to fixed-width runs of each line
        chunks = [c.strip() for c in CHUNK_PATTERN.findall(text)]
        bullets = [c for c in chunks if c][:MAX_BULLETS]

    return bullets or [EMPTY_BULLET]


def page_to_slide(text: str, page_number: int) -> SlideRecord:
    return SlideRecord(
        title=f"Page {page_number}",
        bullets=page_to_bullets(text or ""),
        category=HEURISTIC_CATEGORY,
        diagram_type=DiagramType.TEXT,
        image_prompt="",
    )


def synthesize_heuristic(pages: Sequence[str]) -> List[SlideRecord]:
    """One slide per page, in page order."""
    return [page_to_slide(text, number) for number, text in enumerate(pages, start=1)]


class HeuristicSynthesizer(Synthesizer):
    """Builds the same page-per-slide deck for every variant."""

    kind = "heuristic"

    async def synthesize(self, result: ExtractionResult) -> Optional[DeckSet]:
        slides = synthesize_heuristic(result.pages)
        logger.info(f"Heuristic synthesis produced {len(slides)} slides")
        return DeckSet.uniform(slides)
