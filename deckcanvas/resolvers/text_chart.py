"""Text + chart resolver: bullet column beside a bar chart or an image."""

from typing import List

from deckcanvas.resolvers.common import (
    MARGIN,
    GeometryBuilder,
    ResolveContext,
    add_page_chrome,
    bullet_dot,
    color_or,
    round_half_up,
)
from deckcanvas.schemas import ChartBar, ResolvedGeometry, TextAlign, TextChartContent
from deckcanvas.services.geometry import Rect

TEXT_W = 420
BULLET_SIZE = 13
BULLET_LINE_HEIGHT = 1.6

RIGHT_X = 500
RIGHT_W = 430
CHART = Rect(RIGHT_X + 50, 110, 360, 280)
GRID_STEPS = (0, 0.25, 0.5, 0.75, 1)
MAX_BAR_W = 50
IMAGE = Rect(RIGHT_X, 80, RIGHT_W, 380)


def bar_layout(count: int, chart_width: float) -> List[Rect]:
    """Horizontal slots (x, width) of ``count`` bars centered in the chart width.

    The gap narrows from 8 to 4 above eight bars; bars never exceed 50 wide.
    Returned rects carry x and width only.
    """
    if count <= 0:
        return []
    gap = 4 if count > 8 else 8
    bar_w = max(0.0, min(MAX_BAR_W, (chart_width - gap * (count + 1)) / count))
    total = count * bar_w + (count + 1) * gap
    offset = (chart_width - total) / 2
    return [Rect(offset + gap + i * (bar_w + gap), 0, bar_w, 0) for i in range(count)]


def format_value(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _add_chart(builder: GeometryBuilder, content: TextChartContent) -> None:
    defaults = builder.ctx.defaults
    builder.text(
        "chart.title", content.chart_title, RIGHT_X, 80, RIGHT_W, 14, bold=True, heading=True, max_lines=1
    )
    bars: List[ChartBar] = content.bars
    peak = max((bar.value for bar in bars), default=0)
    if peak <= 0:
        peak = 1

    for g, step in enumerate(GRID_STEPS):
        y = CHART.bottom - step * CHART.h
        builder.line(f"chart.grid.{g}", CHART.x, y, CHART.right, y, defaults.rule_color)
        builder.text(
            f"chart.grid.{g}.label",
            f"{round_half_up(peak * step)}{content.unit}",
            RIGHT_X,
            y - 6,
            45,
            9,
            color=defaults.body_color,
            align=TextAlign.RIGHT,
            wrap=False,
        )

    color = color_or(content.bar_color, defaults.accent_color)
    for i, (bar, slot) in enumerate(zip(bars, bar_layout(len(bars), CHART.w))):
        x = CHART.x + slot.x
        height = max(0.0, bar.value) / peak * CHART.h
        top = CHART.bottom - height
        builder.rect(f"chart.bar.{i}", x, top, slot.w, height, fill=color)
        label_w = slot.w + 16
        builder.text(
            f"chart.bar.{i}.value",
            f"{format_value(bar.value)}{content.unit}",
            x + slot.w / 2 - label_w / 2,
            top - 14,
            label_w,
            9,
            align=TextAlign.CENTER,
            wrap=False,
        )
        builder.text(
            f"chart.bar.{i}.label",
            bar.label,
            x + slot.w / 2 - label_w / 2,
            CHART.bottom + 6,
            label_w,
            9,
            color=defaults.body_color,
            align=TextAlign.CENTER,
            max_lines=2,
        )


def resolve(content: TextChartContent, ctx: ResolveContext) -> ResolvedGeometry:
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)

    y = 66
    heading = builder.text("heading", content.heading, MARGIN, y, TEXT_W, 20, bold=True, heading=True)
    if heading:
        y += heading.h + 14
    for i, bullet in enumerate(content.bullets):
        bullet_dot(builder, f"bullet.{i}.dot", MARGIN, y, BULLET_SIZE, defaults.ink_color)
        element = builder.text(
            f"bullet.{i}", bullet, MARGIN + 14, y, TEXT_W - 14, BULLET_SIZE, line_height=BULLET_LINE_HEIGHT
        )
        if element:
            y += element.h + 4

    if content.mode == "image":
        builder.image("image", content.image, IMAGE.x, IMAGE.y, IMAGE.w, IMAGE.h)
        builder.text(
            "caption", content.caption, IMAGE.x, IMAGE.bottom + 8, IMAGE.w, 11, color=defaults.body_color, max_lines=3
        )
    else:
        _add_chart(builder, content)

    return builder.build()
