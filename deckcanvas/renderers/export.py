"""Export renderer: draws resolved geometry onto a reportlab PDF canvas.

One canvas unit is one PDF point and the page size equals the logical canvas, so
only the y axis needs flipping. The PDF surface cannot measure text while
drawing; every wrapped line and fitted size comes from the resolved geometry.
"""

from functools import lru_cache
from io import BytesIO
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import structlog
from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

from deckcanvas.renderers.base import (
    DASH_PATTERN,
    PLACEHOLDER_FILL,
    Assets,
    BaseRenderer,
    Box,
    arrowhead,
    effective_radius,
    image_placement,
    parse_hex_color,
    text_line_box,
    text_line_positions,
    union_box,
)
from deckcanvas.renderers.preview import font_file
from deckcanvas.schemas import ResolvedGeometry, TextAlign, VisualElement

logger = structlog.get_logger(__name__)

FALLBACK_FONTS = ("Helvetica", "Helvetica-Bold")


@lru_cache(maxsize=64)
def register_font(font_dir: Optional[Path], family: Optional[str], bold: bool) -> str:
    """Register a family's TrueType file once and return its PDF font name.

    Families without a file in ``font_dir`` fall back to Helvetica.
    """
    path = font_file(font_dir, family, bold)
    if path is None:
        return FALLBACK_FONTS[bold]
    name = path.stem
    if name not in pdfmetrics.getRegisteredFontNames():
        try:
            pdfmetrics.registerFont(TTFont(name, str(path)))
        except TTFError as e:
            logger.warning("font_register_failed", family=family, path=str(path), error=str(e))
            return FALLBACK_FONTS[bold]
    return name


class ExportRenderer(BaseRenderer):
    """PDF pages, one per resolved geometry."""

    def __init__(self, font_dir: Optional[Path] = None, title: str = ""):
        super().__init__()
        self.font_dir = font_dir
        self.title = title
        self.pdf: Optional[canvas.Canvas] = None
        self.page_height = 0.0

    def render(self, geometry: ResolvedGeometry, assets: Optional[Assets] = None) -> bytes:
        """Render one page and return PDF bytes."""
        return self.render_pages([geometry], assets)

    def render_pages(self, pages: Iterable[ResolvedGeometry], assets: Optional[Assets] = None) -> bytes:
        """Render every geometry as its own page of a single PDF document."""
        buffer = BytesIO()
        self.pdf = None
        count = 0
        for geometry in pages:
            size = (geometry.width, geometry.height)
            if self.pdf is None:
                self.pdf = canvas.Canvas(buffer, pagesize=size)
                if self.title:
                    self.pdf.setTitle(self.title)
            else:
                self.pdf.setPageSize(size)
            self.page_height = geometry.height
            self._background(geometry)
            self.draw_elements(geometry, assets or {})
            self.pdf.showPage()
            count += 1

        if self.pdf is None:
            raise ValueError("at least one page is required")
        self.pdf.save()
        logger.debug("pdf_rendered", pages=count, size=buffer.tell())
        return buffer.getvalue()

    # Helpers

    def _y(self, y: float) -> float:
        return self.page_height - y

    def _canvas_box(self, x0: float, y0: float, x1: float, y1: float) -> Box:
        """PDF rectangle back in canvas units, top-left first."""
        return (min(x0, x1), self._y(max(y0, y1)), max(x0, x1), self._y(min(y0, y1)))

    def _rgb(self, value: Optional[str]) -> Optional[Tuple[float, float, float, float]]:
        rgba = parse_hex_color(value)
        if rgba is None:
            return None
        return tuple(channel / 255 for channel in rgba)

    def _set_fill(self, value: Optional[str], opacity: float = 1.0) -> bool:
        rgba = self._rgb(value)
        if rgba is None:
            return False
        self.pdf.setFillColorRGB(*rgba[:3])
        self.pdf.setFillAlpha(rgba[3] * opacity)
        return True

    def _set_stroke(self, value: Optional[str], width: float, opacity: float = 1.0, dashed: bool = False) -> bool:
        rgba = self._rgb(value)
        if rgba is None or width <= 0:
            return False
        self.pdf.setStrokeColorRGB(*rgba[:3])
        self.pdf.setStrokeAlpha(rgba[3] * opacity)
        self.pdf.setLineWidth(width)
        if dashed:
            self.pdf.setDash(list(DASH_PATTERN))
        return True

    def _background(self, geometry: ResolvedGeometry) -> None:
        self.pdf.saveState()
        if self._set_fill(geometry.background):
            self.pdf.rect(0, 0, geometry.width, geometry.height, stroke=0, fill=1)
        self.pdf.restoreState()

    def _triangle(self, points) -> List[Tuple[float, float]]:
        flipped = [(x, self._y(y)) for x, y in points]
        path = self.pdf.beginPath()
        path.moveTo(*flipped[0])
        for point in flipped[1:]:
            path.lineTo(*point)
        path.close()
        self.pdf.drawPath(path, stroke=0, fill=1)
        return flipped

    # Primitives

    def draw_rect(self, element: VisualElement) -> Optional[Box]:
        style = element.style
        self.pdf.saveState()
        fill = self._set_fill(style.fill, style.opacity)
        stroke = self._set_stroke(style.stroke, style.stroke_width, style.opacity, style.dashed)
        drawn = None
        if fill or stroke:
            bottom = self._y(element.y + element.h)
            radius = effective_radius(element)
            if radius:
                self.pdf.roundRect(
                    element.x, bottom, element.w, element.h, radius, stroke=int(stroke), fill=int(fill)
                )
            else:
                self.pdf.rect(element.x, bottom, element.w, element.h, stroke=int(stroke), fill=int(fill))
            drawn = self._canvas_box(element.x, bottom, element.x + element.w, bottom + element.h)
        self.pdf.restoreState()
        return drawn

    def draw_circle(self, element: VisualElement) -> Optional[Box]:
        style = element.style
        self.pdf.saveState()
        fill = self._set_fill(style.fill, style.opacity)
        stroke = self._set_stroke(style.stroke, style.stroke_width, style.opacity, style.dashed)
        drawn = None
        if fill or stroke:
            corners = (element.x, self._y(element.y + element.h), element.x + element.w, self._y(element.y))
            self.pdf.ellipse(*corners, stroke=int(stroke), fill=int(fill))
            drawn = self._canvas_box(*corners)
        self.pdf.restoreState()
        return drawn

    def draw_line(self, element: VisualElement) -> Optional[Box]:
        style = element.style
        width = style.stroke_width or 1
        color = style.stroke if self._rgb(style.stroke) else "#000000"
        self.pdf.saveState()
        points = [(element.x, self._y(element.y)), (element.x2, self._y(element.y2))]
        self._set_stroke(color, width, dashed=style.dashed)
        self.pdf.line(*points[0], *points[1])
        self._set_fill(color)
        heads = []
        if element.marker_end:
            heads.append(arrowhead(element.x, element.y, element.x2, element.y2, width))
        if element.marker_start:
            heads.append(arrowhead(element.x2, element.y2, element.x, element.y, width))
        for head in heads:
            points.extend(self._triangle(head))
        self.pdf.restoreState()
        xs = [x for x, _ in points]
        ys = [y for _, y in points]
        return self._canvas_box(min(xs), min(ys), max(xs), max(ys))

    def draw_text(self, element: VisualElement) -> Optional[Box]:
        style = element.style
        font = register_font(self.font_dir, style.font_family, style.bold)
        self.pdf.saveState()
        self._set_fill(style.color or "#000000")
        self.pdf.setFont(font, style.font_size)
        slots = []
        for line, anchor_x, baseline in text_line_positions(element):
            if not line:
                continue
            y = self._y(baseline)
            if style.align == TextAlign.CENTER:
                self.pdf.drawCentredString(anchor_x, y, line)
            elif style.align == TextAlign.RIGHT:
                self.pdf.drawRightString(anchor_x, y, line)
            else:
                self.pdf.drawString(anchor_x, y, line)
            slots.append(text_line_box(anchor_x, self._y(y), element))
        self.pdf.restoreState()
        return union_box(slots)

    def draw_image(self, element: VisualElement, image: Image.Image) -> Optional[Box]:
        crop, (x, y, w, h) = image_placement(image.width, image.height, element)
        if w <= 0 or h <= 0:
            return None
        bottom = self._y(y + h)
        self.pdf.saveState()
        radius = effective_radius(element)
        if radius:
            clip = self.pdf.beginPath()
            clip.roundRect(x, bottom, w, h, radius)
            self.pdf.clipPath(clip, stroke=0, fill=0)
        self.pdf.drawImage(ImageReader(image.crop(crop)), x, bottom, w, h, mask="auto")
        self.pdf.restoreState()
        return self._canvas_box(x, bottom, x + w, bottom + h)

    def draw_placeholder(self, element: VisualElement) -> Optional[Box]:
        self.pdf.saveState()
        self._set_fill(PLACEHOLDER_FILL)
        radius = effective_radius(element)
        bottom = self._y(element.y + element.h)
        if radius:
            self.pdf.roundRect(element.x, bottom, element.w, element.h, radius, stroke=0, fill=1)
        else:
            self.pdf.rect(element.x, bottom, element.w, element.h, stroke=0, fill=1)
        self.pdf.restoreState()
        return self._canvas_box(element.x, bottom, element.x + element.w, bottom + element.h)
