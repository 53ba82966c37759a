"""
Illustrative imagery from the image-generation endpoint.

Prompts are sanitized before they are placed in a URL, and every download is
checked with Pillow before it reaches the presentation.
"""

import io
import re
from typing import Optional, Tuple
from urllib.parse import quote

import requests
from PIL import Image, UnidentifiedImageError

from decksmith.errors import RenderError
from decksmith.renderers.themes import ThemePreset
from decksmith.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_IMAGE_API_URL = "https://image.pollinations.ai/prompt"
DEFAULT_TIMEOUT = 60.0  # seconds
PROMPT_SUFFIX = " high quality, detailed, professional, 4k, no text"
MAX_PROMPT_CHARS = 500

SLIDE_IMAGE_SIZE = (800, 600)
BACKGROUND_SIZE = (1280, 720)
THUMBNAIL_SIZE = (400, 300)
THUMBNAIL_PROMPT_CHARS = 100
FALLBACK_THUMBNAIL_URL = "https://images.unsplash.com/photo-1557804506-669a67965ba0?w=400&h=300&fit=crop"


def sanitize_prompt(prompt: str) -> str:
    """Drop HTML-special characters, flatten control whitespace, cap the length."""
    cleaned = re.sub(r"[<>\"'&]", "", prompt or "")
    cleaned = re.sub(r"[\r\n\t]", " ", cleaned)
    return cleaned.strip()[:MAX_PROMPT_CHARS]


def sanitize_color(color: str) -> str:
    """Keep at most six hex digits."""
    return re.sub(r"[^0-9A-Fa-f]", "", color or "")[:6]


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    value = sanitize_color(color).rjust(6, "0")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def build_image_url(
    prompt: str,
    seed: int,
    base_url: str = DEFAULT_IMAGE_API_URL,
    size: Tuple[int, int] = SLIDE_IMAGE_SIZE,
) -> str:
    full_prompt = sanitize_prompt(prompt) + PROMPT_SUFFIX
    width, height = size
    return (
        f"{base_url.rstrip('/')}/{quote(full_prompt, safe='')}"
        f"?width={width}&height={height}&nologo=true&seed={seed}"
    )


def build_background_url(theme: ThemePreset, base_url: str = DEFAULT_IMAGE_API_URL) -> str:
    prompt = f"{theme.cover_background_prompt} {sanitize_color(theme.primary)}"
    width, height = BACKGROUND_SIZE
    return f"{base_url.rstrip('/')}/{quote(prompt, safe='')}?width={width}&height={height}&nologo=true"


def thumbnail_url(prompt: Optional[str], base_url: str = DEFAULT_IMAGE_API_URL) -> str:
    """Job thumbnail: a small render of the first slide's prompt, or a stock photo."""
    if not prompt:
        return FALLBACK_THUMBNAIL_URL
    width, height = THUMBNAIL_SIZE
    return (
        f"{base_url.rstrip('/')}/{quote(prompt[:THUMBNAIL_PROMPT_CHARS], safe='')}"
        f"?width={width}&height={height}&nologo=true"
    )


def image_size(data: bytes) -> Tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        return img.size


class ImageClient:
    """Downloads generated images over HTTP."""

    def __init__(
        self,
        base_url: str = DEFAULT_IMAGE_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> bytes:
        """
        Download one image and check that Pillow can read it.

        Raises:
            RenderError: On network failure, HTTP error status, or bytes that
                are not an image
        """
        logger.debug(f"Fetching image {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise RenderError(f"Image request failed: {e}") from e

        data = response.content
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError) as e:
            raise RenderError(f"Image endpoint returned unreadable data ({len(data)} bytes)") from e
        return data

    def slide_image(self, prompt: str, seed: int) -> bytes:
        return self.fetch(build_image_url(prompt, seed, self.base_url))

    def cover_background(self, theme: ThemePreset) -> bytes:
        """Abstract background washed toward the theme's primary color, as PNG."""
        data = self.fetch(build_background_url(theme, self.base_url))
        try:
            with Image.open(io.BytesIO(data)) as img:
                art = img.convert("RGB")
            base = Image.new("RGB", art.size, hex_to_rgb(theme.primary))
            blended = Image.blend(base, art, theme.cover_background_opacity)
            out = io.BytesIO()
            blended.save(out, format="PNG")
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise RenderError(f"Failed to prepare cover background: {e}") from e
        return out.getvalue()
