"""Presentation renderers."""

from decksmith.renderers.images import ImageClient, build_image_url, sanitize_color, sanitize_prompt, thumbnail_url
from decksmith.renderers.pptx_renderer import PPTXRenderer, chart_series, output_filename
from decksmith.renderers.themes import THEMES, ThemePreset, get_theme

__all__ = [
    "PPTXRenderer",
    "ImageClient",
    "THEMES",
    "ThemePreset",
    "get_theme",
    "build_image_url",
    "sanitize_color",
    "sanitize_prompt",
    "thumbnail_url",
    "chart_series",
    "output_filename",
]
