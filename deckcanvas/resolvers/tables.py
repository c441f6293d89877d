"""Table resolvers: data table and two-party comparison table.

Both keep every row the same height; when the default height would overflow
the available space all rows shrink together, down to a floor.
"""

import math
from typing import List, Optional, Tuple

from deckcanvas.resolvers.common import MARGIN, GeometryBuilder, ResolveContext, add_page_chrome
from deckcanvas.schemas import ComparisonTableContent, DataTableContent, ResolvedGeometry, TextAlign

TABLE_W = 900
CELL_PADDING = 8

# === Data table ===

DATA_TOP = 68
DATA_HEADER_BLOCK = 57
DATA_BOTTOM = 524
DEFAULT_ROW_H = 34
MIN_ROW_H = 20
FOOTNOTE_LINE_H = 17
CELL_FONT_SIZE = 11


def normalize_column_widths(widths: List[float]) -> List[float]:
    """Make width percentages sum to 100.

    The signed remainder ``100 - sum`` is spread evenly over all columns. If that
    would push a column below zero, the non-negative widths are scaled
    proportionally instead, and an all-zero set becomes an even split.
    """
    count = len(widths)
    if not count:
        return []
    total = sum(widths)
    if math.isclose(total, 100, abs_tol=1e-9):
        return list(widths)

    adjusted = [width + (100 - total) / count for width in widths]
    if min(adjusted) >= 0:
        return adjusted

    clamped = [max(0.0, width) for width in widths]
    clamped_total = sum(clamped)
    if clamped_total <= 0:
        return [100 / count] * count
    return [width * 100 / clamped_total for width in clamped]


def footnote_height(count: int) -> int:
    return count * FOOTNOTE_LINE_H + (8 if count > 0 else 0)


def data_row_height(row_count: int, footnote_count: int) -> float:
    """Uniform row height for ``row_count`` body rows plus the header row."""
    available = DATA_BOTTOM - DATA_TOP - DATA_HEADER_BLOCK - footnote_height(footnote_count)
    total_rows = row_count + 1
    needed = total_rows * DEFAULT_ROW_H
    if needed > available > 0:
        return max(MIN_ROW_H, math.floor(available / total_rows))
    return DEFAULT_ROW_H


def _cell_text(
    builder: GeometryBuilder,
    element_id: str,
    text: str,
    x: float,
    y: float,
    w: float,
    row_h: float,
    size: float,
    bold: bool = False,
    color: Optional[str] = None,
    align: TextAlign = TextAlign.LEFT,
) -> None:
    """Cell text vertically centered, truncated to the lines the row can hold."""
    inner_w = max(0.0, w - 2 * CELL_PADDING)
    max_lines = max(1, math.floor((row_h - 4) / (size * 1.2)))
    lines = builder.wrap(text, inner_w, size, bold)[:max_lines]
    text_h = len(lines) * size * 1.2
    builder.text(
        element_id,
        "\n".join(lines),
        x + CELL_PADDING,
        y + (row_h - text_h) / 2,
        inner_w,
        size,
        color=color,
        bold=bold,
        align=align,
        wrap=False,
    )


def resolve_data_table(content: DataTableContent, ctx: ResolveContext) -> ResolvedGeometry:
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)
    builder.text("heading", content.heading, MARGIN, DATA_TOP, TABLE_W, 20, bold=True, heading=True, max_lines=1)
    builder.text(
        "subtitle", content.subtitle, MARGIN, DATA_TOP + 28, TABLE_W, 12, color=defaults.body_color, max_lines=1
    )

    columns = list(content.columns)
    column_count = len(columns) or max((len(row.cells) for row in content.rows), default=0)
    if not column_count:
        return builder.build()

    if columns:
        percents = normalize_column_widths([column.width for column in columns])
    else:
        percents = [100 / column_count] * column_count
    widths = [TABLE_W * percent / 100 for percent in percents]
    lefts = [MARGIN + sum(widths[:i]) for i in range(column_count)]

    # blank footnotes still reserve their line
    row_h = data_row_height(len(content.rows), len(content.footnotes))
    builder.fit["row_height"] = row_h
    top = DATA_TOP + DATA_HEADER_BLOCK

    builder.rect("header", MARGIN, top, TABLE_W, row_h, fill=defaults.ink_color)
    for i in range(column_count):
        header = columns[i].header if i < len(columns) else ""
        _cell_text(
            builder,
            f"header.{i}",
            header,
            lefts[i],
            top,
            widths[i],
            row_h,
            CELL_FONT_SIZE,
            bold=True,
            color=defaults.card_background,
        )

    for r, row in enumerate(content.rows):
        row_top = top + (r + 1) * row_h
        if row.highlighted:
            builder.rect(
                f"row.{r}.highlight", MARGIN, row_top, TABLE_W, row_h, fill=defaults.accent_color, opacity=0.25
            )
        cells = (row.cells + [""] * column_count)[:column_count]
        for c, value in enumerate(cells):
            missing = not value.strip()
            _cell_text(
                builder,
                f"row.{r}.cell.{c}",
                defaults.missing_text if missing else value,
                lefts[c],
                row_top,
                widths[c],
                row_h,
                CELL_FONT_SIZE,
                bold=row.highlighted,
                color=defaults.missing_text_color if missing else defaults.ink_color,
            )
        builder.line(
            f"row.{r}.rule", MARGIN, row_top + row_h, MARGIN + TABLE_W, row_top + row_h, defaults.rule_color
        )

    y = top + (len(content.rows) + 1) * row_h + 8
    for i, note in enumerate(content.footnotes):
        builder.text(f"footnote.{i}", note, MARGIN, y, TABLE_W, 10, color=defaults.body_color, max_lines=1)
        y += FOOTNOTE_LINE_H

    return builder.build()


# === Comparison table ===

COMPARISON_TOP = 96
COMPARISON_HEADER_H = 60
COMPARISON_ROW_H = 40
COMPARISON_MIN_ROW_H = 28
COMPARISON_FONT_SIZE = 12
COMPARISON_MIN_FONT_SIZE = 9
COMPARISON_COLUMNS = (0.3, 0.35, 0.35)


def comparison_metrics(row_count: int, has_citation: bool) -> Tuple[float, float]:
    """(row height, font size) for a comparison table."""
    available = 396 if has_citation else 421
    if row_count and COMPARISON_HEADER_H + row_count * COMPARISON_ROW_H > available:
        row_h = max(COMPARISON_MIN_ROW_H, math.floor((available - COMPARISON_HEADER_H) / row_count))
        font = max(COMPARISON_MIN_FONT_SIZE, math.floor(COMPARISON_FONT_SIZE * row_h / COMPARISON_ROW_H))
        return row_h, font
    return COMPARISON_ROW_H, COMPARISON_FONT_SIZE


def resolve_comparison_table(content: ComparisonTableContent, ctx: ResolveContext) -> ResolvedGeometry:
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)
    builder.text("heading", content.heading, MARGIN, 64, TABLE_W, 20, bold=True, heading=True, max_lines=1)

    citation = content.source_citation.strip()
    row_h, font = comparison_metrics(len(content.rows), bool(citation))
    builder.fit.update({"row_height": row_h, "font_size": font})

    widths = [TABLE_W * share for share in COMPARISON_COLUMNS]
    lefts = [MARGIN, MARGIN + widths[0], MARGIN + widths[0] + widths[1]]
    table_h = COMPARISON_HEADER_H + len(content.rows) * row_h

    builder.rect(
        "ours.highlight", lefts[1], COMPARISON_TOP, widths[1], table_h, fill=defaults.accent_color, opacity=0.15
    )
    _cell_text(
        builder,
        "header.ours",
        defaults.brand_name,
        lefts[1],
        COMPARISON_TOP,
        widths[1],
        COMPARISON_HEADER_H,
        16,
        bold=True,
        align=TextAlign.CENTER,
    )
    _cell_text(
        builder,
        "header.theirs",
        content.competitor_label,
        lefts[2],
        COMPARISON_TOP,
        widths[2],
        COMPARISON_HEADER_H,
        16,
        bold=True,
        color=defaults.body_color,
        align=TextAlign.CENTER,
    )

    for r, row in enumerate(content.rows):
        row_top = COMPARISON_TOP + COMPARISON_HEADER_H + r * row_h
        builder.line(f"row.{r}.rule", MARGIN, row_top, MARGIN + TABLE_W, row_top, defaults.rule_color)
        for c, value in enumerate((row.label, row.ours, row.theirs)):
            _cell_text(
                builder,
                f"row.{r}.cell.{c}",
                value,
                lefts[c],
                row_top,
                widths[c],
                row_h,
                font,
                bold=c == 0,
                align=TextAlign.LEFT if c == 0 else TextAlign.CENTER,
            )

    if citation:
        builder.text(
            "citation",
            citation,
            MARGIN,
            COMPARISON_TOP + 396 + 8,
            TABLE_W,
            9,
            color=defaults.body_color,
            max_lines=2,
        )
    return builder.build()
