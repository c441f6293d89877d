"""Diagram resolver: a logo circle with up to three labelled branches."""

from deckcanvas.resolvers.common import GeometryBuilder, ResolveContext, strip_bold_markers
from deckcanvas.schemas import DiagramContent, ResolvedGeometry
from deckcanvas.services.geometry import Point, circle_edge_point

LOGO_CENTER = Point(170, 270)
LOGO_RADIUS = 80
BRANCH_POINTS = (Point(380, 90), Point(380, 240), Point(380, 390))
NODE_RADIUS = 8
TEXT_X = 400
TEXT_W = 500


def resolve(content: DiagramContent, ctx: ResolveContext) -> ResolvedGeometry:
    """Branches with a heading fill the branch slots top to bottom; the rest are dropped."""
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)

    left = LOGO_CENTER.x - LOGO_RADIUS
    top = LOGO_CENTER.y - LOGO_RADIUS
    if ctx.has_asset(content.logo_image):
        builder.circle("logo.frame", LOGO_CENTER.x, LOGO_CENTER.y, LOGO_RADIUS, fill=defaults.card_background)
        builder.image("logo", content.logo_image, left, top, 2 * LOGO_RADIUS, 2 * LOGO_RADIUS, radius=LOGO_RADIUS)
        builder.circle(
            "logo.border", LOGO_CENTER.x, LOGO_CENTER.y, LOGO_RADIUS, stroke=defaults.rule_color, stroke_width=3
        )
    else:
        builder.image("logo", content.logo_image, left, top, 2 * LOGO_RADIUS, 2 * LOGO_RADIUS, radius=LOGO_RADIUS)

    branches = [branch for branch in content.branches if branch.heading.strip()][: len(BRANCH_POINTS)]
    for i, point in enumerate(BRANCH_POINTS[: len(branches)]):
        start = circle_edge_point(LOGO_CENTER, LOGO_RADIUS, point)
        builder.line(f"branch.{i}.line", start.x, start.y, point.x, point.y, defaults.rule_color, width=2)
    for i, point in enumerate(BRANCH_POINTS[: len(branches)]):
        builder.circle(f"branch.{i}.node", point.x, point.y, NODE_RADIUS, fill=defaults.accent_color)

    for i, (branch, point) in enumerate(zip(branches, BRANCH_POINTS)):
        y = point.y - 12
        heading = builder.text(
            f"branch.{i}.heading", branch.heading, TEXT_X, y, TEXT_W, 22, bold=True, heading=True, line_height=1.3
        )
        y += heading.h + 6
        builder.text(
            f"branch.{i}.body",
            strip_bold_markers(branch.body),
            TEXT_X,
            y,
            TEXT_W,
            14,
            color=defaults.body_color,
            heading=True,
            line_height=1.5,
        )
    return builder.build()
