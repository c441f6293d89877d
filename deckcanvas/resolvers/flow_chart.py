"""Flow-chart resolver: percentage-placed nodes joined by edge-to-edge arrows."""

from typing import Dict, Optional, Tuple

import structlog

from deckcanvas.resolvers.common import MARGIN, GeometryBuilder, ResolveContext, add_page_chrome, color_or
from deckcanvas.schemas import FlowArrow, FlowChartContent, FlowNode, LabelPosition, ResolvedGeometry, TextAlign
from deckcanvas.services.autofit import baseline_offset
from deckcanvas.services.geometry import Point, edge_intersection, percent_to_pixel

logger = structlog.get_logger(__name__)

CHART_X = 240
CHART_Y = 60
CHART_W = 690
CHART_H = 460

PANEL_TOP = 64
PANEL_W = 190

ARROW_STROKE = 1.5
LABEL_SIZE = 9
LABEL_LINE_HEIGHT = 1.2
NODE_PADDING = 8

# (dx, dy, alignment) applied to the arrow midpoint
LABEL_OFFSETS: Dict[Optional[LabelPosition], Tuple[float, float, TextAlign]] = {
    LabelPosition.ABOVE: (0, -8, TextAlign.CENTER),
    LabelPosition.BELOW: (0, 14, TextAlign.CENTER),
    LabelPosition.LEFT: (-8, 0, TextAlign.RIGHT),
    LabelPosition.RIGHT: (8, 0, TextAlign.LEFT),
    None: (0, 0, TextAlign.CENTER),
}


def node_box(node: FlowNode) -> Tuple[float, float, float, float]:
    """Absolute (left, top, width, height) of a node; negative sizes collapse to zero."""
    width = max(0.0, node.width)
    height = max(0.0, node.height)
    left = CHART_X + percent_to_pixel(node.x, CHART_W)
    top = CHART_Y + percent_to_pixel(node.y, CHART_H)
    return left, top, width, height


def node_center(node: FlowNode) -> Point:
    left, top, width, height = node_box(node)
    return Point(left + width / 2, top + height / 2)


def connector(source: FlowNode, target: FlowNode) -> Tuple[Point, Point]:
    """Endpoints of an arrow touching the borders of both nodes."""
    source_center = node_center(source)
    target_center = node_center(target)
    start = edge_intersection(source_center, max(0.0, source.width) / 2, max(0.0, source.height) / 2, target_center)
    end = edge_intersection(target_center, max(0.0, target.width) / 2, max(0.0, target.height) / 2, source_center)
    return start, end


def label_anchor(start: Point, end: Point, position: Optional[LabelPosition]) -> Tuple[Point, TextAlign]:
    """Baseline anchor and alignment of an arrow label."""
    dx, dy, align = LABEL_OFFSETS[position]
    return Point((start.x + end.x) / 2 + dx, (start.y + end.y) / 2 + dy), align


def _add_label(builder: GeometryBuilder, arrow: FlowArrow, start: Point, end: Point) -> None:
    if not arrow.label.strip():
        return
    anchor, align = label_anchor(start, end, arrow.label_position)
    width = builder.text_width(arrow.label, LABEL_SIZE) + 2
    if align == TextAlign.CENTER:
        left = anchor.x - width / 2
    elif align == TextAlign.RIGHT:
        left = anchor.x - width
    else:
        left = anchor.x
    top = anchor.y - baseline_offset(LABEL_SIZE, LABEL_LINE_HEIGHT)
    builder.text(
        f"arrow.{arrow.id}.label",
        arrow.label,
        left,
        top,
        width,
        LABEL_SIZE,
        color=builder.ctx.defaults.body_color,
        line_height=LABEL_LINE_HEIGHT,
        align=align,
        wrap=False,
    )


def _add_panel(builder: GeometryBuilder, content: FlowChartContent) -> None:
    """Heading, legend and visible footnotes in the left panel."""
    defaults = builder.ctx.defaults
    y = PANEL_TOP
    heading = builder.text("heading", content.heading, MARGIN, y, PANEL_W, 18, bold=True, heading=True)
    if heading:
        y += heading.h + 16

    for i, item in enumerate(content.legend):
        if not item.label.strip():
            continue
        builder.rect(f"legend.{i}.swatch", MARGIN, y + 1, 12, 12, fill=color_or(item.color, defaults.ink_color))
        label = builder.text(f"legend.{i}.label", item.label, MARGIN + 20, y, PANEL_W - 20, 10)
        y += max(20, label.h + 6)

    visible = [note for note in content.footnotes if note.visible and note.text.strip()]
    if visible:
        y += 8
    for i, note in enumerate(visible):
        text = builder.text(f"footnote.{i}", note.text, MARGIN, y, PANEL_W, 9, color=defaults.body_color)
        y += text.h + 4


def resolve(content: FlowChartContent, ctx: ResolveContext) -> ResolvedGeometry:
    """Resolve a flow-chart page.

    Arrows naming a node id that is not present are skipped without affecting
    the others. When two nodes share an id the first one wins.
    """
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)
    _add_panel(builder, content)

    nodes: Dict[str, FlowNode] = {}
    for node in content.nodes:
        nodes.setdefault(node.id, node)

    for node in nodes.values():
        left, top, width, height = node_box(node)
        builder.rect(
            f"node.{node.id}",
            left,
            top,
            width,
            height,
            fill=color_or(node.fill, defaults.card_background),
            stroke=defaults.ink_color,
            stroke_width=1,
            radius=max(0.0, node.radius),
        )
        text_color = color_or(node.text_color, defaults.ink_color)
        inner_width = max(0.0, width - 2 * NODE_PADDING)
        heading = builder.text(
            f"node.{node.id}.heading",
            node.heading,
            left + NODE_PADDING,
            top + NODE_PADDING,
            inner_width,
            11,
            color=text_color,
            bold=True,
            heading=True,
        )
        body_top = top + NODE_PADDING + (heading.h + 2 if heading else 0)
        builder.text(
            f"node.{node.id}.body", node.body, left + NODE_PADDING, body_top, inner_width, 9, color=text_color
        )

    arrow_color = color_or(content.arrow_color, defaults.ink_color)
    for arrow in content.arrows:
        source = nodes.get(arrow.source)
        target = nodes.get(arrow.target)
        if source is None or target is None:
            logger.debug(
                "arrow_skipped",
                arrow_id=arrow.id,
                source=arrow.source,
                target=arrow.target,
                reason="missing_node",
            )
            continue

        start, end = connector(source, target)
        anchor, _ = label_anchor(start, end, arrow.label_position)
        builder.line(
            f"arrow.{arrow.id}",
            start.x,
            start.y,
            end.x,
            end.y,
            arrow_color,
            width=ARROW_STROKE,
            marker_start=arrow.bidirectional,
            marker_end=True,
            anchor=(anchor.x, anchor.y),
        )
        _add_label(builder, arrow, start, end)

    return builder.build()
