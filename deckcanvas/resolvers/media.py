"""Resolvers for image-led pages: text + images, before/after grid and logo table."""

import math
from typing import List, Tuple

from deckcanvas.resolvers.common import (
    MARGIN,
    GeometryBuilder,
    ResolveContext,
    add_page_chrome,
    bullet_dot,
    color_or,
)
from deckcanvas.schemas import (
    BeforeAfterContent,
    ImageFit,
    LogosTextTableContent,
    ResolvedGeometry,
    TextImagesContent,
)
from deckcanvas.services.geometry import Point, Rect

# === Text + images ===

TEXT_W = 430
PHOTO_X = 488
LOGO = Rect(PHOTO_X, 95, 160, 60)
SINGLE_PHOTO_W = 442
PAIR_PHOTO_W = 219
PAIR_GAP = 4


def photo_slots(count: int, has_logo: bool) -> List[Rect]:
    """One wide slot, or two side by side; the logo pushes photos down."""
    top = 185 if has_logo else 95
    height = 314 if has_logo else 374
    if count >= 2:
        return [Rect(PHOTO_X + i * (PAIR_PHOTO_W + PAIR_GAP), top, PAIR_PHOTO_W, height) for i in range(2)]
    return [Rect(PHOTO_X, top, SINGLE_PHOTO_W, height)]


def resolve_text_images(content: TextImagesContent, ctx: ResolveContext) -> ResolvedGeometry:
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)

    y = 66
    heading = builder.text("heading", content.heading, MARGIN, y, TEXT_W, 20, bold=True, heading=True)
    if heading:
        y += heading.h + 12
    body = builder.text("body", content.body, MARGIN, y, TEXT_W, 13, color=defaults.body_color, line_height=1.6)
    if body:
        y += body.h + 10
    for i, bullet in enumerate(content.bullets):
        bullet_dot(builder, f"bullet.{i}.dot", MARGIN, y, 13, defaults.ink_color)
        element = builder.text(f"bullet.{i}", bullet, MARGIN + 14, y, TEXT_W - 14, 13, line_height=1.6)
        if element:
            y += element.h + 4

    has_logo = bool(content.logo_image)
    if has_logo:
        builder.image("logo", content.logo_image, LOGO.x, LOGO.y, LOGO.w, LOGO.h, fit=ImageFit.CONTAIN)
    photos = content.photos[:2]
    for i, slot in enumerate(photo_slots(len(photos), has_logo)):
        key = photos[i] if i < len(photos) else None
        builder.image(f"photo.{i}", key, slot.x, slot.y, slot.w, slot.h)
    return builder.build()


# === Before / after ===

GRID = Rect(40, 100, 880, 420)
GRID_GAP = 8
ARROW_SPACE = 49
CAPTION_H = 20
MAX_FREEFORM_CELLS = 8
FIXED_LAYOUTS = {"2x2": (2, 2), "1x2": (1, 2), "2x1": (2, 1)}


def before_after_grid(layout: str, count: int) -> Tuple[List[Rect], List[Tuple[Point, Point]]]:
    """Cell rectangles and before-to-after arrow endpoints for a layout.

    Fixed layouts always yield all their cells and reserve an arrow gutter
    between the before and after positions. Freeform fits ``count`` cells into
    at most two columns with plain gaps and no arrows.
    """
    if layout in FIXED_LAYOUTS:
        rows, cols = FIXED_LAYOUTS[layout]
        arrows_between_columns = cols == 2
        arrows_between_rows = cols == 1 and rows == 2
    else:
        count = max(0, min(count, MAX_FREEFORM_CELLS))
        if not count:
            return [], []
        cols = min(count, 2)
        rows = math.ceil(count / cols)
        arrows_between_columns = arrows_between_rows = False

    col_gap = ARROW_SPACE if arrows_between_columns else GRID_GAP
    row_gap = ARROW_SPACE if arrows_between_rows else GRID_GAP
    cell_w = (GRID.w - col_gap * (cols - 1)) / cols
    cell_h = (GRID.h - row_gap * (rows - 1)) / rows

    cells = []
    for r in range(rows):
        for c in range(cols):
            cells.append(Rect(GRID.x + c * (cell_w + col_gap), GRID.y + r * (cell_h + row_gap), cell_w, cell_h))
    if layout not in FIXED_LAYOUTS:
        cells = cells[:count]

    arrows = []
    if arrows_between_columns:
        for r in range(rows):
            before, after = cells[r * 2], cells[r * 2 + 1]
            mid_y = before.y + before.h / 2
            arrows.append((Point(before.right + 10, mid_y), Point(after.x - 10, mid_y)))
    elif arrows_between_rows:
        before, after = cells
        mid_x = before.x + before.w / 2
        arrows.append((Point(mid_x, before.bottom + 10), Point(mid_x, after.y - 10)))
    return cells, arrows


def resolve_before_after(content: BeforeAfterContent, ctx: ResolveContext) -> ResolvedGeometry:
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)
    builder.text("heading", content.heading, MARGIN, 66, GRID.w, 20, bold=True, heading=True, max_lines=1)

    cells, arrows = before_after_grid(content.layout, len(content.cells))
    has_captions = any(cell.caption.strip() for cell in content.cells)
    for i, rect in enumerate(cells):
        cell = content.cells[i] if i < len(content.cells) else None
        image_h = rect.h - (CAPTION_H if has_captions else 0)
        builder.image(f"cell.{i}", cell.image if cell else None, rect.x, rect.y, rect.w, image_h)
        if cell and has_captions:
            builder.text(
                f"cell.{i}.caption",
                cell.caption,
                rect.x,
                rect.y + image_h + 4,
                rect.w,
                11,
                color=defaults.body_color,
                max_lines=1,
            )

    color = color_or(content.arrow_color, defaults.accent_color)
    for i, (start, end) in enumerate(arrows):
        builder.line(f"arrow.{i}", start.x, start.y, end.x, end.y, color, width=3, marker_end=True)
    return builder.build()


# === Logos + text table ===

TABLE_TOP = 65
TABLE_H = 455
LOGO_W = 160
ENTRY_TEXT_X = 210
ENTRY_TEXT_W = 720


def entry_height(count: int) -> int:
    return math.floor(TABLE_H / max(count, 1))


def resolve_logos_text_table(content: LogosTextTableContent, ctx: ResolveContext) -> ResolvedGeometry:
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)

    height = entry_height(len(content.entries))
    builder.fit["entry_height"] = height
    for i, entry in enumerate(content.entries):
        top = TABLE_TOP + i * height
        builder.image(
            f"entry.{i}.logo",
            entry.logo,
            MARGIN,
            top + 6,
            LOGO_W,
            max(0, height - 12),
            fit=ImageFit.CONTAIN,
        )
        max_lines = max(1, math.floor((height - 8) / (13 * 1.5)))
        lines = builder.wrap(entry.text, ENTRY_TEXT_W, 13)[:max_lines]
        text_h = len(lines) * 13 * 1.5
        builder.text(
            f"entry.{i}.text",
            "\n".join(lines),
            ENTRY_TEXT_X,
            top + (height - text_h) / 2,
            ENTRY_TEXT_W,
            13,
            line_height=1.5,
            wrap=False,
        )
        if i < len(content.entries) - 1:
            builder.line(f"entry.{i}.rule", MARGIN, top + height, MARGIN + 900, top + height, defaults.rule_color)
    return builder.build()
