"""Photo-gallery resolver: up to sixteen photos in balanced rows."""

import structlog

from deckcanvas.resolvers.common import MARGIN, GeometryBuilder, ResolveContext, add_page_chrome
from deckcanvas.schemas import PhotoGalleryContent, ResolvedGeometry
from deckcanvas.services.geometry import Rect, distribute_into_rows, grid_cells

logger = structlog.get_logger(__name__)

GRID_TOP = 62
GRID_W = 900
GRID_H = 460
GAP = 3
MAX_ROWS = 4
PER_ROW = 4


def resolve(content: PhotoGalleryContent, ctx: ResolveContext) -> ResolvedGeometry:
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)

    rows = distribute_into_rows(len(content.photos), MAX_ROWS, PER_ROW)
    cells = grid_cells(rows, Rect(MARGIN, GRID_TOP, GRID_W, GRID_H), GAP)
    if len(content.photos) > len(cells):
        logger.debug("photos_dropped", count=len(content.photos), kept=len(cells))

    for index, cell in enumerate(cells):
        builder.image(
            f"cell.{index}",
            content.photos[index],
            cell.x,
            cell.y,
            cell.w,
            cell.h,
            placeholder_stroke=False,
        )
    return builder.build()
