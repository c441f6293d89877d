"""Preview renderer: draws resolved geometry onto a Pillow raster surface.

The raster can be measured while drawing, which ``PillowTextMeasurer`` exposes
for drift checks. Layout itself is never re-fitted here; fitted values come
from the resolved geometry.
"""

import math
from functools import lru_cache
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple

import structlog
from PIL import Image, ImageDraw, ImageFont

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
from deckcanvas.schemas import ResolvedGeometry, TextAlign, VisualElement

logger = structlog.get_logger(__name__)

ANCHORS = {TextAlign.LEFT: "ls", TextAlign.CENTER: "ms", TextAlign.RIGHT: "rs"}


def font_file(font_dir: Optional[Path], family: Optional[str], bold: bool) -> Optional[Path]:
    """TrueType file for a family, e.g. 'Noto Sans JP' -> NotoSansJP-Bold.ttf."""
    if not font_dir or not family:
        return None
    path = Path(font_dir) / f"{family.replace(' ', '')}-{'Bold' if bold else 'Regular'}.ttf"
    return path if path.is_file() else None


@lru_cache(maxsize=256)
def load_font(font_dir: Optional[Path], family: Optional[str], size: float, bold: bool):
    """Load a TrueType font, falling back to Pillow's built-in font at the same size."""
    pixel_size = max(1, round(size))
    path = font_file(font_dir, family, bold)
    if path is not None:
        try:
            return ImageFont.truetype(str(path), pixel_size)
        except OSError as e:
            logger.warning("font_load_failed", family=family, path=str(path), error=str(e))
    return ImageFont.load_default(size=pixel_size)


class PillowTextMeasurer:
    """Real text widths from the fonts the preview draws with."""

    def __init__(self, font_dir: Optional[Path] = None, default_family: Optional[str] = None):
        self.font_dir = font_dir
        self.default_family = default_family

    def width(self, text: str, font_size: float, bold: bool = False, family: Optional[str] = None) -> float:
        font = load_font(self.font_dir, family or self.default_family, font_size, bold)
        return font.getlength(text) * font_size / max(1, round(font_size))


class PreviewRenderer(BaseRenderer):
    """Raster preview at ``scale`` pixels per canvas unit."""

    def __init__(self, scale: float = 1.0, font_dir: Optional[Path] = None):
        super().__init__()
        self.scale = scale
        self.font_dir = font_dir
        self.image: Optional[Image.Image] = None
        self.draw: Optional[ImageDraw.ImageDraw] = None

    def render(self, geometry: ResolvedGeometry, assets: Optional[Assets] = None) -> bytes:
        """Render one page and return PNG bytes."""
        size = (max(1, round(geometry.width * self.scale)), max(1, round(geometry.height * self.scale)))
        self.image = Image.new("RGBA", size, parse_hex_color(geometry.background) or (255, 255, 255, 255))
        self.draw = ImageDraw.Draw(self.image)
        self.draw_elements(geometry, assets or {})

        buffer = BytesIO()
        self.image.convert("RGB").save(buffer, format="PNG")
        logger.debug("preview_rendered", template=geometry.template, width=size[0], height=size[1])
        return buffer.getvalue()

    # Helpers

    def _px(self, value: float) -> float:
        return value * self.scale

    def _canvas_box(self, box: Tuple[float, float, float, float]) -> Box:
        """Pixel box back in canvas units."""
        return tuple(value / self.scale for value in box)

    def _box(self, element: VisualElement) -> Tuple[float, float, float, float]:
        return (
            self._px(element.x),
            self._px(element.y),
            self._px(element.x + element.w),
            self._px(element.y + element.h),
        )

    def _color(self, value: Optional[str], opacity: float = 1.0):
        rgba = parse_hex_color(value)
        if rgba is None:
            return None
        return rgba[:3] + (round(rgba[3] * opacity),)

    def _layer(self, opacity: float):
        """Drawing target honouring opacity: the page itself, or a layer composited later."""
        if opacity >= 1:
            return self.image, self.draw
        layer = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        return layer, ImageDraw.Draw(layer)

    def _commit(self, layer: Image.Image) -> None:
        if layer is not self.image:
            self.image.alpha_composite(layer)

    def _dashed_line(self, draw, start, end, fill, width: int) -> None:
        length = math.hypot(end[0] - start[0], end[1] - start[1])
        if length == 0:
            return
        dash, gap = (self._px(value) for value in DASH_PATTERN)
        ux, uy = (end[0] - start[0]) / length, (end[1] - start[1]) / length
        position = 0.0
        while position < length:
            stop = min(position + dash, length)
            draw.line(
                [(start[0] + ux * position, start[1] + uy * position), (start[0] + ux * stop, start[1] + uy * stop)],
                fill=fill,
                width=width,
            )
            position = stop + gap

    # Primitives

    def draw_rect(self, element: VisualElement) -> Optional[Box]:
        style = element.style
        box = self._box(element)
        fill = self._color(style.fill, style.opacity)
        outline = self._color(style.stroke, style.opacity) if style.stroke_width else None
        if not fill and not outline:
            return None
        layer, draw = self._layer(style.opacity)
        width = max(1, round(self._px(style.stroke_width))) if outline else 0
        radius = self._px(effective_radius(element))
        if style.dashed and outline:
            if fill:
                draw.rounded_rectangle(box, radius=radius, fill=fill)
            x0, y0, x1, y1 = box
            for start, end in (((x0, y0), (x1, y0)), ((x1, y0), (x1, y1)), ((x1, y1), (x0, y1)), ((x0, y1), (x0, y0))):
                self._dashed_line(draw, start, end, outline, width)
        else:
            draw.rounded_rectangle(box, radius=radius, fill=fill, outline=outline, width=width)
        self._commit(layer)
        return self._canvas_box(box)

    def draw_circle(self, element: VisualElement) -> Optional[Box]:
        style = element.style
        fill = self._color(style.fill, style.opacity)
        outline = self._color(style.stroke, style.opacity) if style.stroke_width else None
        if not fill and not outline:
            return None
        layer, draw = self._layer(style.opacity)
        width = max(1, round(self._px(style.stroke_width))) if outline else 0
        box = self._box(element)
        if style.dashed and outline:
            if fill:
                draw.ellipse(box, fill=fill)
            for start in range(0, 360, 12):
                draw.arc(box, start, start + 7, fill=outline, width=width)
        else:
            # stroke centered on the outline
            inset = width / 2
            if fill:
                draw.ellipse(box, fill=fill)
            if outline:
                x0, y0, x1, y1 = box
                draw.ellipse((x0 - inset, y0 - inset, x1 + inset, y1 + inset), outline=outline, width=width)
        self._commit(layer)
        return self._canvas_box(box)

    def draw_line(self, element: VisualElement) -> Optional[Box]:
        style = element.style
        color = self._color(style.stroke) or (0, 0, 0, 255)
        width = max(1, round(self._px(style.stroke_width or 1)))
        start = (self._px(element.x), self._px(element.y))
        end = (self._px(element.x2), self._px(element.y2))
        if style.dashed:
            self._dashed_line(self.draw, start, end, color, width)
        else:
            self.draw.line([start, end], fill=color, width=width)
        points = [start, end]
        stroke = style.stroke_width or 1
        heads = []
        if element.marker_end:
            heads.append(arrowhead(element.x, element.y, element.x2, element.y2, stroke))
        if element.marker_start:
            heads.append(arrowhead(element.x2, element.y2, element.x, element.y, stroke))
        for head in heads:
            polygon = [(self._px(x), self._px(y)) for x, y in head]
            self.draw.polygon(polygon, fill=color)
            points.extend(polygon)
        xs = [x for x, _ in points]
        ys = [y for _, y in points]
        return self._canvas_box((min(xs), min(ys), max(xs), max(ys)))

    def draw_text(self, element: VisualElement) -> Optional[Box]:
        style = element.style
        color = self._color(style.color) or (0, 0, 0, 255)
        font = load_font(self.font_dir, style.font_family, self._px(style.font_size), style.bold)
        slots = []
        for line, anchor_x, baseline in text_line_positions(element):
            if not line:
                continue
            if not isinstance(font, ImageFont.FreeTypeFont):
                # bitmap fonts only draw from the top-left corner
                shift = {TextAlign.LEFT: 0, TextAlign.CENTER: 0.5, TextAlign.RIGHT: 1}[style.align]
                left = self._px(anchor_x) - font.getlength(line) * shift
                top = self._px(baseline - style.font_size * 0.8)
                self.draw.text((left, top), line, font=font, fill=color)
                drawn_anchor = (left + font.getlength(line) * shift) / self.scale
                drawn_baseline = top / self.scale + style.font_size * 0.8
            else:
                origin = (self._px(anchor_x), self._px(baseline))
                self.draw.text(origin, line, font=font, fill=color, anchor=ANCHORS[style.align])
                drawn_anchor, drawn_baseline = origin[0] / self.scale, origin[1] / self.scale
            slots.append(text_line_box(drawn_anchor, drawn_baseline, element))
        return union_box(slots)

    def draw_image(self, element: VisualElement, image: Image.Image) -> Optional[Box]:
        crop, (x, y, w, h) = image_placement(image.width, image.height, element)
        if w <= 0 or h <= 0:
            return None
        size = (max(1, round(self._px(w))), max(1, round(self._px(h))))
        tile = image.crop(crop).resize(size, Image.Resampling.LANCZOS)
        mask = tile.getchannel("A")
        radius = effective_radius(element)
        if radius:
            shape = Image.new("L", size, 0)
            ImageDraw.Draw(shape).rounded_rectangle((0, 0, size[0] - 1, size[1] - 1), radius=self._px(radius), fill=255)
            mask = Image.composite(mask, shape, shape)
        self.image.paste(tile, (round(self._px(x)), round(self._px(y))), mask)
        return self._canvas_box((self._px(x), self._px(y), self._px(x + w), self._px(y + h)))

    def draw_placeholder(self, element: VisualElement) -> Optional[Box]:
        box = self._box(element)
        self.draw.rounded_rectangle(box, radius=self._px(effective_radius(element)), fill=self._color(PLACEHOLDER_FILL))
        return self._canvas_box(box)
