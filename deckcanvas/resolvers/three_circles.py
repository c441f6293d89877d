"""Three-circles resolver: three overlapping circles spanning the content width."""

from typing import Tuple

from deckcanvas.resolvers.common import MARGIN, GeometryBuilder, ResolveContext, add_page_chrome, color_or
from deckcanvas.schemas import CircleItem, ResolvedGeometry, ThreeCirclesContent

CIRCLE_COUNT = 3
CENTER_Y = 308
BORDER = 8
FILL_OPACITY = 0.85
TEXT_INSET = 30
TEXT_TOP_OFFSET = -60
TEXT_WIDTH_RATIO = 0.55


def circle_metrics(span: float) -> Tuple[float, float]:
    """(diameter, overlap) for three circles spanning ``span``.

    Each circle overlaps the next by a fifth of its diameter, so
    ``3D - 2(D/5) = span`` gives ``D = span / 2.6``.
    """
    diameter = span / 2.6
    return diameter, diameter / 5


def circle_centers(span: float, left: float = 0) -> Tuple[float, ...]:
    """Center x of each circle, left to right."""
    diameter, overlap = circle_metrics(span)
    return tuple(left + diameter / 2 + i * (diameter - overlap) for i in range(CIRCLE_COUNT))


def heading_font_size(heading: str) -> int:
    return 12 if len(heading) > 40 else 14


def body_font_size(body: str) -> int:
    """Body size in three quantized steps by character count."""
    if len(body) > 200:
        return 9
    if len(body) > 150:
        return 10
    return 11


def resolve(content: ThreeCirclesContent, ctx: ResolveContext) -> ResolvedGeometry:
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)
    builder.text("heading", content.heading, MARGIN, 66, ctx.canvas.width - 2 * MARGIN, 22, bold=True, heading=True)

    span = ctx.canvas.width - 2 * MARGIN
    diameter, _ = circle_metrics(span)
    radius = diameter / 2
    border_color = color_or(content.circle_border_color, defaults.accent_color)
    items = (content.circles + [CircleItem()] * CIRCLE_COUNT)[:CIRCLE_COUNT]

    for i, center_x in enumerate(circle_centers(span, MARGIN)):
        builder.circle(
            f"circle.{i}",
            center_x,
            CENTER_Y,
            radius - BORDER / 2,
            fill=defaults.page_background,
            stroke=border_color,
            stroke_width=BORDER,
            opacity=FILL_OPACITY,
        )

    # Texts follow all circles; neighbouring circles overlap
    text_width = diameter * TEXT_WIDTH_RATIO
    for i, (center_x, item) in enumerate(zip(circle_centers(span, MARGIN), items)):
        left = center_x - radius + TEXT_INSET
        top = CENTER_Y + TEXT_TOP_OFFSET
        heading_size = heading_font_size(item.heading)
        heading = builder.text(
            f"circle.{i}.heading", item.heading, left, top, text_width, heading_size, bold=True, heading=True
        )
        if heading:
            top += heading.h + 6
        body_size = body_font_size(item.body)
        builder.text(
            f"circle.{i}.body", item.body, left, top, text_width, body_size, color=defaults.body_color, line_height=1.4
        )
        builder.fit[f"circle_{i}_heading_font_size"] = heading_size
        builder.fit[f"circle_{i}_body_font_size"] = body_size

    return builder.build()
