"""
Visual theme presets.

One preset per theme identifier; the renderer reads every color and font
from here rather than branching on the theme name.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from decksmith.errors import RenderError


class ThemePreset(BaseModel):
    """Colors (6-digit hex, no '#') and typography for one theme."""

    model_config = ConfigDict(frozen=True)

    name: str
    primary: str
    secondary: str
    accent: str
    text: str
    title_color: str
    font: str
    chart_colors: List[str]
    cover_accent_bar: bool = False
    # Prompt for a generated abstract cover background, if any
    cover_background_prompt: Optional[str] = None
    # Share of the cover background image that shows through the primary color
    cover_background_opacity: float = 0.2


THEMES: Dict[str, ThemePreset] = {
    "executive": ThemePreset(
        name="executive",
        primary="0F172A",  # slate
        secondary="F8FAFC",
        accent="4F46E5",  # indigo
        text="334155",
        title_color="0F172A",
        font="Arial",
        chart_colors=["4F46E5", "10B981", "F59E0B"],
        cover_accent_bar=True,
    ),
    "creative": ThemePreset(
        name="creative",
        primary="4C1D95",  # deep purple
        secondary="FAF5FF",
        accent="D946EF",  # fuchsia
        text="2D0A31",
        title_color="2D0A31",
        font="Georgia",
        chart_colors=["D946EF", "8B5CF6", "06B6D4"],
        cover_background_prompt="abstract art artistic gradient",
    ),
    "minimal": ThemePreset(
        name="minimal",
        primary="000000",
        secondary="FFFFFF",
        accent="525252",  # gray
        text="171717",
        title_color="171717",
        font="Courier New",
        chart_colors=["171717", "737373", "A3A3A3"],
    ),
}


def get_theme(name: str) -> ThemePreset:
    try:
        return THEMES[name]
    except KeyError:
        raise RenderError(f"Unknown theme: {name}") from None
