"""
Synthesizer interface and deck variant presets.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from decksmith.models import DeckSet, ExtractionResult, SlideDeckVariant, SlideRecord

# (deck attribute, variant id, display name, theme, accent color)
VARIANT_PRESETS = [
    ("executive_deck", "v1", "Executive Summary", "executive", "#4F46E5"),
    ("creative_deck", "v2", "Creative Deck", "creative", "#8B5CF6"),
    ("technical_deck", "v3", "Technical Details", "minimal", "#0EA5E9"),
]


class Synthesizer(ABC):
    """Turns extracted text into structured slide decks."""

    #: Recorded on the job so users can tell model output from the fallback
    kind: str = "heuristic"

    @abstractmethod
    async def synthesize(self, result: ExtractionResult) -> Optional[DeckSet]:
        """
        Build the three decks for a document.

        Returns:
            DeckSet, or None when this synthesizer could not produce one and
            the caller should fall back
        """


def build_variants(
    deckset: DeckSet,
    fallback: Optional[List[SlideRecord]] = None,
) -> List[SlideDeckVariant]:
    """
    Wrap each deck of a DeckSet in its variant preset.

    An empty deck is replaced by `fallback` when given, and skipped otherwise,
    so every returned variant has at least one slide.
    """
    variants = []
    for attr, variant_id, name, theme, color in VARIANT_PRESETS:
        slides = getattr(deckset, attr) or list(fallback or [])
        if not slides:
            continue
        variants.append(
            SlideDeckVariant(id=variant_id, name=name, theme=theme, color=color, slides=slides)
        )
    return variants
