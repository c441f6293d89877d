"""Shared plumbing for template resolvers.

A resolver receives its content and a ``ResolveContext`` and appends elements to
a ``GeometryBuilder`` in paint order. Text is wrapped here with the context's
measurer, so every resolved text element already carries its final lines.
"""

import math
import re
from dataclasses import dataclass, field
from typing import FrozenSet, List, Mapping, Optional, Tuple

import structlog

from deckcanvas.config import LANGUAGE_FONTS, RenderDefaults
from deckcanvas.schemas import (
    ChromeFields,
    ElementKind,
    ImageFit,
    Language,
    ResolvedGeometry,
    Style,
    TextAlign,
    VisualElement,
)
from deckcanvas.services.autofit import EstimatedTextMeasurer, TextMeasurer, text_block_height, wrap_text
from deckcanvas.services.geometry import Canvas

logger = structlog.get_logger(__name__)

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

# Page chrome (content templates)
MARGIN = 30
CHROME_TOP = 14
LABEL_TOP = 38
RULE_Y = 54
PAGE_NUMBER_Y = 524

# Wide header (disclaimer, index, contact)
WIDE_MARGIN = 48
WIDE_TOP = 28
WIDE_LABEL_TOP = 52
WIDE_RULE_Y = 78


def color_or(value: Optional[str], fallback: str) -> str:
    """Return ``value`` when it is a hex color, else ``fallback``."""
    if value and HEX_COLOR.match(value.strip()):
        return value.strip()
    return fallback


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (font sizes from scales)."""
    return math.floor(value + 0.5)


def strip_bold_markers(text: str) -> str:
    """Drop ``**`` emphasis markers from inline text."""
    return text.replace("**", "")


@dataclass(frozen=True)
class ResolveContext:
    """Everything a resolver may read besides its content."""

    defaults: RenderDefaults
    canvas: Canvas = field(default_factory=Canvas)
    language: Language = Language.EN
    assets: FrozenSet[str] = frozenset()
    measurer: TextMeasurer = field(default_factory=EstimatedTextMeasurer)

    @classmethod
    def build(
        cls,
        defaults: RenderDefaults,
        language: Language = Language.EN,
        assets: Optional[Mapping[str, Optional[bytes]]] = None,
        canvas: Optional[Canvas] = None,
        measurer: Optional[TextMeasurer] = None,
    ) -> "ResolveContext":
        """Create a context from resolved asset bytes (``None`` marks an absent image)."""
        available = frozenset(key for key, data in (assets or {}).items() if data)
        return cls(
            defaults=defaults,
            canvas=canvas or Canvas(),
            language=language,
            assets=available,
            measurer=measurer or EstimatedTextMeasurer(),
        )

    @property
    def fonts(self) -> Tuple[str, str]:
        """(body, heading) families for the language."""
        return LANGUAGE_FONTS[self.language.value]

    def has_asset(self, key: Optional[str]) -> bool:
        return bool(key) and key in self.assets


class GeometryBuilder:
    """Accumulates visual elements for one page."""

    def __init__(self, ctx: ResolveContext, template: str, background: Optional[str] = None):
        self.ctx = ctx
        self.template = template
        self.background = background or ctx.defaults.page_background
        self.elements: List[VisualElement] = []
        self.fit: dict = {}

    def add(self, element: VisualElement) -> VisualElement:
        self.elements.append(element)
        return element

    def rect(
        self,
        element_id: str,
        x: float,
        y: float,
        w: float,
        h: float,
        fill: Optional[str] = None,
        stroke: Optional[str] = None,
        stroke_width: float = 0,
        radius: float = 0,
        opacity: float = 1.0,
        dashed: bool = False,
    ) -> VisualElement:
        style = Style(
            fill=fill, stroke=stroke, stroke_width=stroke_width, radius=radius, opacity=opacity, dashed=dashed
        )
        return self.add(VisualElement(id=element_id, kind=ElementKind.RECT, x=x, y=y, w=w, h=h, style=style))

    def circle(
        self,
        element_id: str,
        cx: float,
        cy: float,
        r: float,
        fill: Optional[str] = None,
        stroke: Optional[str] = None,
        stroke_width: float = 0,
        opacity: float = 1.0,
        dashed: bool = False,
    ) -> VisualElement:
        style = Style(fill=fill, stroke=stroke, stroke_width=stroke_width, opacity=opacity, dashed=dashed)
        return self.add(
            VisualElement(id=element_id, kind=ElementKind.CIRCLE, x=cx - r, y=cy - r, w=2 * r, h=2 * r, style=style)
        )

    def line(
        self,
        element_id: str,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        color: str,
        width: float = 1,
        marker_start: bool = False,
        marker_end: bool = False,
        dashed: bool = False,
        anchor: Optional[Tuple[float, float]] = None,
    ) -> VisualElement:
        return self.add(
            VisualElement(
                id=element_id,
                kind=ElementKind.LINE,
                x=x1,
                y=y1,
                x2=x2,
                y2=y2,
                style=Style(stroke=color, stroke_width=width, dashed=dashed),
                marker_start=marker_start,
                marker_end=marker_end,
                anchor=anchor,
            )
        )

    def wrap(self, text: str, width: float, size: float, bold: bool = False) -> List[str]:
        return wrap_text(text, width, size, self.ctx.measurer, bold=bold)

    def text_height(self, text: str, width: float, size: float, line_height: float = 1.2, bold: bool = False) -> float:
        """Height ``text`` would take when wrapped into ``width``."""
        return text_block_height(len(self.wrap(text, width, size, bold)), size, line_height)

    def text(
        self,
        element_id: str,
        text: str,
        x: float,
        y: float,
        w: float,
        size: float,
        color: Optional[str] = None,
        bold: bool = False,
        heading: bool = False,
        line_height: float = 1.2,
        align: TextAlign = TextAlign.LEFT,
        wrap: bool = True,
        max_lines: Optional[int] = None,
    ) -> Optional[VisualElement]:
        """Add a wrapped text block; returns ``None`` (and adds nothing) for empty text."""
        if not text or not text.strip():
            return None
        lines = self.wrap(text, w, size, bold) if wrap else text.split("\n")
        if max_lines is not None:
            lines = lines[:max_lines]
        body_family, heading_family = self.ctx.fonts
        style = Style(
            font_family=heading_family if heading else body_family,
            font_size=size,
            bold=bold,
            line_height=line_height,
            color=color or self.ctx.defaults.ink_color,
            align=align,
        )
        return self.add(
            VisualElement(
                id=element_id,
                kind=ElementKind.TEXT,
                x=x,
                y=y,
                w=w,
                h=text_block_height(len(lines), size, line_height),
                style=style,
                lines=tuple(lines),
            )
        )

    def text_width(self, text: str, size: float, bold: bool = False) -> float:
        return self.ctx.measurer.width(text, size, bold)

    def image(
        self,
        element_id: str,
        key: Optional[str],
        x: float,
        y: float,
        w: float,
        h: float,
        fit: ImageFit = ImageFit.COVER,
        radius: float = 0,
        placeholder_stroke: bool = True,
    ) -> VisualElement:
        """Add an image, or a placeholder of the same shape when the asset is absent.

        A radius of at least half the shorter side clips to a circle/pill.
        """
        defaults = self.ctx.defaults
        if self.ctx.has_asset(key):
            style = Style(radius=radius)
            return self.add(
                VisualElement(
                    id=element_id, kind=ElementKind.IMAGE, x=x, y=y, w=w, h=h, style=style, asset_key=key, fit=fit
                )
            )

        if key:
            logger.debug("image_placeholder", element_id=element_id, asset_key=key, reason="asset_absent")
        stroke = defaults.placeholder_stroke if placeholder_stroke else None
        if radius and w == h and radius * 2 >= w:
            return self.circle(
                f"{element_id}.placeholder",
                x + w / 2,
                y + h / 2,
                w / 2,
                fill=defaults.placeholder_fill,
                stroke=stroke,
                stroke_width=2 if stroke else 0,
                dashed=bool(stroke),
            )
        return self.rect(
            f"{element_id}.placeholder",
            x,
            y,
            w,
            h,
            fill=defaults.placeholder_fill,
            stroke=stroke,
            stroke_width=2 if stroke else 0,
            radius=radius,
            dashed=bool(stroke),
        )

    def build(self) -> ResolvedGeometry:
        body_family, heading_family = self.ctx.fonts
        geometry = ResolvedGeometry(
            template=self.template,
            width=self.ctx.canvas.width,
            height=self.ctx.canvas.height,
            background=self.background,
            language=self.ctx.language,
            font_family=body_family,
            heading_font_family=heading_family,
            elements=tuple(self.elements),
            fit=dict(self.fit),
        )
        outside = geometry.out_of_bounds()
        if outside:
            logger.debug(
                "elements_outside_canvas",
                template=self.template,
                element_ids=[element.id for element in outside],
            )
        return geometry


def add_page_chrome(builder: GeometryBuilder, chrome: ChromeFields) -> None:
    """Wordmark, year, section label, rule and page number of content templates."""
    defaults = builder.ctx.defaults
    width = builder.ctx.canvas.width
    builder.text(
        "chrome.wordmark", defaults.brand_name, MARGIN, CHROME_TOP, 200, 16, bold=True, heading=True, wrap=False
    )
    builder.text(
        "chrome.year",
        chrome.year or defaults.year,
        width - MARGIN - 120,
        CHROME_TOP,
        120,
        13,
        align=TextAlign.RIGHT,
        wrap=False,
    )
    builder.text("chrome.label", chrome.label, MARGIN, LABEL_TOP, width - 2 * MARGIN, 11, color=defaults.body_color)
    builder.line("chrome.rule", MARGIN, RULE_Y, width - MARGIN, RULE_Y, defaults.rule_color)
    if chrome.page_number is not None:
        builder.text(
            "chrome.page_number",
            str(chrome.page_number),
            width / 2 - 40,
            PAGE_NUMBER_Y,
            80,
            11,
            align=TextAlign.CENTER,
            wrap=False,
        )


def add_wide_header(builder: GeometryBuilder, year: Optional[str], label: str = "") -> None:
    """Header variant with 48 unit margins and a full-width rule at y=78."""
    defaults = builder.ctx.defaults
    width = builder.ctx.canvas.width
    builder.text(
        "chrome.wordmark", defaults.brand_name, WIDE_MARGIN, WIDE_TOP, 200, 16, bold=True, heading=True, wrap=False
    )
    builder.text(
        "chrome.year",
        year or defaults.year,
        width - WIDE_MARGIN - 120,
        WIDE_TOP,
        120,
        14,
        align=TextAlign.RIGHT,
        wrap=False,
    )
    builder.text("chrome.label", label, WIDE_MARGIN, WIDE_LABEL_TOP, width - 2 * WIDE_MARGIN, 12)
    builder.line("chrome.rule", 0, WIDE_RULE_Y, width, WIDE_RULE_Y, defaults.rule_color)


def bullet_dot(builder: GeometryBuilder, element_id: str, x: float, line_top: float, size: float, color: str) -> None:
    """4 unit bullet dot centered on the first line of a bullet at ``line_top``."""
    builder.circle(element_id, x + 2, line_top + size * 0.75, 2, fill=color)
