"""Slide synthesizers: heuristic fallback and model-backed."""

from decksmith.synthesizers.base import VARIANT_PRESETS, Synthesizer, build_variants
from decksmith.synthesizers.heuristic import HeuristicSynthesizer, synthesize_heuristic
from decksmith.synthesizers.model import (
    GeminiClient,
    ModelClient,
    ModelSynthesizer,
    parse_deck_response,
)

__all__ = [
    "Synthesizer",
    "VARIANT_PRESETS",
    "build_variants",
    "HeuristicSynthesizer",
    "synthesize_heuristic",
    "ModelClient",
    "GeminiClient",
    "ModelSynthesizer",
    "parse_deck_response",
]
