"""
PPTX renderer using python-pptx.

Writes one SlideDeckVariant as a widescreen presentation: a cover slide
followed by one content slide per SlideRecord.
"""

import io
import re
from typing import List, Optional, Tuple

from pptx import Presentation
from pptx.chart.data import CategoryChartData
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE, XL_LEGEND_POSITION
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.oxml.ns import qn
from pptx.util import Inches, Pt

from decksmith.errors import RenderError
from decksmith.models import DiagramType, RenderedFile, RenderRequest, SlideDeckVariant, SlideRecord
from decksmith.renderers.images import ImageClient, image_size
from decksmith.renderers.themes import ThemePreset, get_theme
from decksmith.utils.logging import get_logger

logger = get_logger(__name__)

SLIDE_WIDTH = 13.333  # inches, 16:9
SLIDE_HEIGHT = 7.5
BLANK_LAYOUT = 6

# Content column geometry, inches
TEXT_LEFT = 0.5
TEXT_TOP = 1.3
TEXT_HEIGHT = 5.5
TEXT_WIDTH_WITH_IMAGE = 6.5
TEXT_WIDTH_FULL = 12.3
BULLET_SIZE_WITH_IMAGE = 12
BULLET_SIZE_FULL = 14

IMAGE_BOX = (7.3, 1.3, 5.5, 4.0)
IMAGE_AREA = (7.4, 1.4, 5.3, 3.8)
CAPTION_BOX = (7.3, 5.4, 5.5, 0.3)
IMAGE_CAPTION = "AI Generated Visual"

CHART_TOP = 5.8
CHART_HEIGHT = 1.2

DEFAULT_SERIES_NAME = "Projected Metrics"
DEFAULT_CATEGORIES = ["Q1", "Q2", "Q3", "Q4"]
DEFAULT_VALUES = [25, 40, 55, 80]
MAX_SERIES_POINTS = 6
MAX_FLOW_STEPS = 4

NUMBER_PATTERN = re.compile(r"\d[\d,]*(?:\.\d+)?")

CHART_TYPES = {
    DiagramType.BAR_CHART: XL_CHART_TYPE.COLUMN_CLUSTERED,
    DiagramType.PIE_CHART: XL_CHART_TYPE.PIE,
    DiagramType.TIMELINE: XL_CHART_TYPE.LINE_MARKERS,
}


def rgb(hex_color: str) -> RGBColor:
    return RGBColor.from_string(hex_color.lstrip("#").upper())


SOURCE_EXTENSION = re.compile(r"\.(pdf|docx)$", re.IGNORECASE)


def title_stem(source_title: str) -> str:
    """Title without a trailing .pdf/.docx; inner dots are kept."""
    return SOURCE_EXTENSION.sub("", source_title)


def output_filename(source_title: str, theme: str) -> str:
    """`<title stem>_<theme>.pptx`, with characters unsafe in filenames removed."""
    stem = re.sub(r'[<>:"/\\|?*\x00-\x1F]', "", title_stem(source_title)).strip(" .")
    return f"{stem or 'presentation'}_{theme}.pptx"


def chart_series(bullets: List[str]) -> Tuple[str, List[str], List[float]]:
    """
    Series for a data slide.

    Uses the first number of each bullet that has one, labelled by the
    bullet's opening words, when at least two bullets carry numbers.
    Otherwise falls back to a fixed illustrative quarterly series.
    """
    labels: List[str] = []
    values: List[float] = []
    for bullet in bullets:
        match = NUMBER_PATTERN.search(bullet)
        if not match:
            continue
        try:
            value = float(match.group().replace(",", ""))
        except ValueError:
            continue
        words = bullet.split()
        label = " ".join(words[:3])
        labels.append(label[:24] or f"Item {len(labels) + 1}")
        values.append(value)
        if len(values) == MAX_SERIES_POINTS:
            break

    if len(values) < 2:
        return DEFAULT_SERIES_NAME, list(DEFAULT_CATEGORIES), list(DEFAULT_VALUES)
    return "Key Figures", labels, values


def fit_contain(
    image_width: int, image_height: int, box: Tuple[float, float, float, float]
) -> Tuple[float, float, float, float]:
    """Largest rectangle with the image's aspect ratio centered inside `box`."""
    left, top, width, height = box
    if image_width <= 0 or image_height <= 0:
        return box
    scale = min(width / image_width, height / image_height)
    fitted_w = image_width * scale
    fitted_h = image_height * scale
    return left + (width - fitted_w) / 2, top + (height - fitted_h) / 2, fitted_w, fitted_h


class PPTXRenderer:
    """
    Render slide-deck variants into PowerPoint presentations.

    Rendering is stateless: the same variant and title always produce the
    same slides. Imagery is requested through `image_client`; without one,
    slides that ask for an image raise RenderError.
    """

    def __init__(self, image_client: Optional[ImageClient] = None):
        self.image_client = image_client

    def render(self, variant: SlideDeckVariant, source_title: str) -> RenderedFile:
        """
        Render one variant.

        Args:
            variant: The deck to write
            source_title: Title of the document the deck came from

        Returns:
            RenderedFile holding the complete .pptx bytes

        Raises:
            RenderError: If writing the presentation or fetching imagery fails
        """
        if not variant.slides:
            raise RenderError(f"Variant {variant.id} has no slides", user_message="No slides to export")

        theme = get_theme(variant.theme)
        logger.info(f"Rendering {variant.name} ({len(variant.slides)} slides, theme={theme.name})")

        try:
            prs = Presentation()
            prs.slide_width = Inches(SLIDE_WIDTH)
            prs.slide_height = Inches(SLIDE_HEIGHT)
            prs.core_properties.author = "decksmith"
            prs.core_properties.title = source_title

            self._render_cover(prs, theme, source_title)
            for index, record in enumerate(variant.slides):
                logger.debug(f"Rendering slide {index + 1}/{len(variant.slides)}")
                self._render_content(prs, theme, record, index, source_title)

            buffer = io.BytesIO()
            prs.save(buffer)
        except RenderError:
            raise
        except Exception as e:
            logger.error(f"Failed to write presentation for {variant.id}: {e}")
            raise RenderError(f"Failed to write presentation: {e}") from e

        filename = output_filename(source_title, theme.name)
        data = buffer.getvalue()
        logger.info(f"Rendered {filename} ({len(data)} bytes)")
        return RenderedFile(filename=filename, data=data, slide_count=len(prs.slides))

    def render_request(self, request: RenderRequest) -> RenderedFile:
        return self.render(request.variant, request.source_title)

    def _render_cover(self, prs, theme: ThemePreset, source_title: str) -> None:
        slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
        self._set_background(slide, theme.primary)

        if theme.cover_background_prompt:
            background = self._images().cover_background(theme)
            slide.shapes.add_picture(
                io.BytesIO(background), 0, 0, width=prs.slide_width, height=prs.slide_height
            )

        if theme.cover_accent_bar:
            self._add_rect(slide, (0, 0, 0.5, SLIDE_HEIGHT), fill=theme.accent)

        self._add_text(
            slide,
            title_stem(source_title).upper(),
            (1.5, 2.5, SLIDE_WIDTH * 0.8, 2.0),
            size=48,
            color="FFFFFF",
            font=theme.font,
            bold=True,
            anchor=MSO_ANCHOR.MIDDLE,
        )
        subtitle = self._add_text(
            slide,
            f"{theme.name.upper()} STRATEGY DECK",
            (1.5, 5.8, SLIDE_WIDTH * 0.8, 0.5),
            size=14,
            color="CBD5E1",
            font=theme.font,
            bold=True,
        )
        # Letter spacing in hundredths of a point
        for run in subtitle.text_frame.paragraphs[0].runs:
            run.font._rPr.set("spc", "1000")

    def _render_content(
        self, prs, theme: ThemePreset, record: SlideRecord, index: int, source_title: str
    ) -> None:
        slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
        self._set_background(slide, theme.secondary)

        self._add_text(
            slide,
            (record.category or "Section").upper(),
            (0.5, 0.15, 3.0, 0.2),
            size=9,
            color=theme.accent,
            font=theme.font,
            bold=True,
        )
        self._add_text(
            slide,
            record.title,
            (0.5, 0.35, SLIDE_WIDTH * 0.9, 0.8),
            size=24,
            color=theme.title_color,
            font=theme.font,
            bold=True,
            anchor=MSO_ANCHOR.MIDDLE,
        )

        has_image = record.has_image
        text_width = TEXT_WIDTH_WITH_IMAGE if has_image else TEXT_WIDTH_FULL
        font_size = BULLET_SIZE_WITH_IMAGE if has_image else BULLET_SIZE_FULL
        self._add_bullets(
            slide,
            record.bullets,
            (TEXT_LEFT, TEXT_TOP, text_width, TEXT_HEIGHT),
            size=font_size,
            color=theme.text,
            font=theme.font,
        )

        if has_image:
            self._add_image(slide, record.image_prompt, index)

        if record.has_chart:
            chart_box = (
                IMAGE_BOX[0] if has_image else TEXT_LEFT,
                CHART_TOP,
                IMAGE_BOX[2] if has_image else TEXT_WIDTH_FULL,
                CHART_HEIGHT,
            )
            if record.diagram_type == DiagramType.PROCESS_FLOW:
                self._add_process_flow(slide, record.bullets, chart_box, theme)
            else:
                self._add_chart(slide, record, chart_box, theme)

        self._add_text(
            slide,
            f"{index + 1} | {source_title}",
            (10.5, 7.2, 2.5, 0.3),
            size=8,
            color="CBD5E1",
            align=PP_ALIGN.RIGHT,
        )

    def _add_image(self, slide, prompt: str, index: int) -> None:
        data = self._images().slide_image(prompt, seed=index)
        self._add_rect(slide, IMAGE_BOX, fill="F1F5F9", line="E2E8F0")

        width_px, height_px = image_size(data)
        left, top, width, height = fit_contain(width_px, height_px, IMAGE_AREA)
        slide.shapes.add_picture(
            io.BytesIO(data), Inches(left), Inches(top), width=Inches(width), height=Inches(height)
        )

        self._add_text(
            slide,
            IMAGE_CAPTION,
            CAPTION_BOX,
            size=8,
            color="94A3B8",
            italic=True,
            align=PP_ALIGN.CENTER,
        )

    def _add_chart(self, slide, record: SlideRecord, box, theme: ThemePreset) -> None:
        name, categories, values = chart_series(record.bullets)
        chart_data = CategoryChartData()
        chart_data.categories = categories
        chart_data.add_series(name, values)

        left, top, width, height = box
        graphic_frame = slide.shapes.add_chart(
            CHART_TYPES[record.diagram_type],
            Inches(left),
            Inches(top),
            Inches(width),
            Inches(height),
            chart_data,
        )
        chart = graphic_frame.chart
        chart.font.size = Pt(8)
        chart.font.name = theme.font

        if record.diagram_type == DiagramType.PIE_CHART:
            chart.has_legend = True
            chart.legend.position = XL_LEGEND_POSITION.RIGHT
            chart.legend.include_in_layout = False
            for i, point in enumerate(chart.plots[0].series[0].points):
                point.format.fill.solid()
                point.format.fill.fore_color.rgb = rgb(theme.chart_colors[i % len(theme.chart_colors)])
        else:
            chart.has_legend = False
            series = chart.plots[0].series[0]
            if record.diagram_type == DiagramType.TIMELINE:
                series.format.line.color.rgb = rgb(theme.chart_colors[0])
            else:
                series.format.fill.solid()
                series.format.fill.fore_color.rgb = rgb(theme.chart_colors[0])

    def _add_process_flow(self, slide, bullets: List[str], box, theme: ThemePreset) -> None:
        steps = list(bullets[:MAX_FLOW_STEPS]) or list(DEFAULT_CATEGORIES)
        left, top, width, height = box
        gap = 0.1
        step_width = (width - gap * (len(steps) - 1)) / len(steps)

        for i, step in enumerate(steps):
            shape = slide.shapes.add_shape(
                MSO_SHAPE.CHEVRON,
                Inches(left + i * (step_width + gap)),
                Inches(top),
                Inches(step_width),
                Inches(height),
            )
            shape.fill.solid()
            shape.fill.fore_color.rgb = rgb(theme.chart_colors[i % len(theme.chart_colors)])
            shape.line.fill.background()

            text_frame = shape.text_frame
            text_frame.word_wrap = True
            p = text_frame.paragraphs[0]
            p.alignment = PP_ALIGN.CENTER
            run = p.add_run()
            run.text = step if len(step) <= 40 else step[:37] + "..."
            run.font.size = Pt(8)
            run.font.name = theme.font
            run.font.color.rgb = rgb("FFFFFF")

    def _add_bullets(self, slide, bullets: List[str], box, size: int, color: str, font: str) -> None:
        left, top, width, height = box
        textbox = slide.shapes.add_textbox(Inches(left), Inches(top), Inches(width), Inches(height))
        text_frame = textbox.text_frame
        text_frame.word_wrap = True
        text_frame.vertical_anchor = MSO_ANCHOR.TOP

        for i, bullet in enumerate(bullets):
            p = text_frame.paragraphs[0] if i == 0 else text_frame.add_paragraph()
            p.line_spacing = Pt(22)
            p.space_before = Pt(8)
            self._set_bullet(p)

            run = p.add_run()
            run.text = bullet
            run.font.size = Pt(size)
            run.font.name = font
            run.font.color.rgb = rgb(color)

    @staticmethod
    def _set_bullet(paragraph, char: str = "•") -> None:
        """Give a text-box paragraph a hanging bullet character."""
        pPr = paragraph._p.get_or_add_pPr()
        pPr.set("marL", str(Inches(0.25)))
        pPr.set("indent", str(-Inches(0.25)))
        for tag in ("a:buNone", "a:buAutoNum", "a:buChar"):
            existing = pPr.find(qn(tag))
            if existing is not None:
                pPr.remove(existing)
        bu_char = pPr.makeelement(qn("a:buChar"), {"char": char})
        pPr.append(bu_char)

    def _add_text(
        self,
        slide,
        text: str,
        box,
        size: int,
        color: str,
        font: Optional[str] = None,
        bold: bool = False,
        italic: bool = False,
        align=None,
        anchor=None,
    ):
        left, top, width, height = box
        textbox = slide.shapes.add_textbox(Inches(left), Inches(top), Inches(width), Inches(height))
        text_frame = textbox.text_frame
        text_frame.word_wrap = True
        if anchor is not None:
            text_frame.vertical_anchor = anchor

        p = text_frame.paragraphs[0]
        if align is not None:
            p.alignment = align
        run = p.add_run()
        run.text = text
        run.font.size = Pt(size)
        run.font.bold = bold
        run.font.italic = italic
        run.font.color.rgb = rgb(color)
        if font:
            run.font.name = font
        return textbox

    @staticmethod
    def _add_rect(slide, box, fill: str, line: Optional[str] = None):
        left, top, width, height = box
        shape = slide.shapes.add_shape(
            MSO_SHAPE.RECTANGLE, Inches(left), Inches(top), Inches(width), Inches(height)
        )
        shape.fill.solid()
        shape.fill.fore_color.rgb = rgb(fill)
        if line:
            shape.line.color.rgb = rgb(line)
            shape.line.width = Pt(1)
        else:
            shape.line.fill.background()
        return shape

    @staticmethod
    def _set_background(slide, color: str) -> None:
        fill = slide.background.fill
        fill.solid()
        fill.fore_color.rgb = rgb(color)

    def _images(self) -> ImageClient:
        if self.image_client is None:
            raise RenderError("Slide imagery requested but no image client is configured")
        return self.image_client
