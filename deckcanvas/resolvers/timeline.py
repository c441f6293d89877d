"""Timeline resolver: dated entries on a vertical line beside a photo."""

from typing import List, Tuple

from deckcanvas.resolvers.common import (
    MARGIN,
    GeometryBuilder,
    ResolveContext,
    add_page_chrome,
    bullet_dot,
    color_or,
    round_half_up,
)
from deckcanvas.schemas import ResolvedGeometry, TimelineContent, TimelineEntry
from deckcanvas.services.autofit import run_fit

ENTRIES_TOP = 100
ENTRIES_H = 420
LINE_X = 36
DOT_R = 6
TEXT_X = 56
TEXT_W = 414
BULLET_INDENT = 12

PHOTO_X = 500
PHOTO_Y = 100
PHOTO_W = 430
PHOTO_H = 340

MIN_SCALE = 0.7
SCALE_STEP = 0.05


def entry_font_sizes(scale: float) -> Tuple[int, int, int]:
    """(year, heading, bullet) sizes for a scale."""
    return (
        max(9, round_half_up(13 * scale)),
        max(10, round_half_up(15 * scale)),
        max(8, round_half_up(11 * scale)),
    )


def _entry_height(builder: GeometryBuilder, entry: TimelineEntry, scale: float) -> float:
    year_size, heading_size, bullet_size = entry_font_sizes(scale)
    height = builder.text_height(entry.year, TEXT_W, year_size, 1.3, bold=True)
    if entry.heading.strip():
        height += 2 + builder.text_height(entry.heading, TEXT_W, heading_size, 1.3, bold=True)
    for bullet in entry.bullets:
        height += 2 + builder.text_height(bullet, TEXT_W - BULLET_INDENT, bullet_size, 1.5)
    return height


def _entries_height(builder: GeometryBuilder, entries: List[TimelineEntry], scale: float) -> float:
    if not entries:
        return 0
    gaps = 14 * scale * (len(entries) - 1)
    return sum(_entry_height(builder, entry, scale) for entry in entries) + gaps


def resolve(content: TimelineContent, ctx: ResolveContext) -> ResolvedGeometry:
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)
    builder.text("heading", content.heading, MARGIN, 66, TEXT_W + TEXT_X - MARGIN, 20, bold=True, heading=True)

    entries = [entry for entry in content.entries if entry.year.strip() or entry.heading.strip() or entry.bullets]
    state = run_fit(
        lambda scale: _entries_height(builder, entries, scale),
        ENTRIES_H,
        1.0,
        SCALE_STEP,
        MIN_SCALE,
        name="timeline_scale",
    )
    scale = state.value
    year_size, heading_size, bullet_size = entry_font_sizes(scale)
    builder.fit.update(
        {
            "scale": scale,
            "year_font_size": year_size,
            "heading_font_size": heading_size,
            "bullet_font_size": bullet_size,
        }
    )

    # Entry tops first; the line is painted under the dots
    tops = []
    y = ENTRIES_TOP
    for entry in entries:
        tops.append(y)
        y += _entry_height(builder, entry, scale) + 14 * scale
    dot_offset = year_size * 1.3 / 2

    if len(entries) > 1:
        builder.line(
            "timeline.line",
            LINE_X,
            tops[0] + dot_offset,
            LINE_X,
            tops[-1] + dot_offset,
            color_or(content.line_color, defaults.ink_color),
            width=2,
        )

    bullet_color = color_or(content.bullet_color, defaults.body_color)
    for i, (entry, top) in enumerate(zip(entries, tops)):
        dot_color = color_or(entry.color, defaults.accent_color)
        builder.circle(f"entry.{i}.dot", LINE_X, top + dot_offset, DOT_R, fill=dot_color)
        y = top
        year = builder.text(f"entry.{i}.year", entry.year, TEXT_X, y, TEXT_W, year_size, bold=True, line_height=1.3)
        if year:
            y += year.h
        heading = builder.text(
            f"entry.{i}.heading",
            entry.heading,
            TEXT_X,
            y + 2,
            TEXT_W,
            heading_size,
            bold=True,
            heading=True,
            line_height=1.3,
        )
        if heading:
            y += 2 + heading.h
        for j, bullet in enumerate(entry.bullets):
            y += 2
            bullet_dot(builder, f"entry.{i}.bullet.{j}.dot", TEXT_X, y, bullet_size, bullet_color)
            element = builder.text(
                f"entry.{i}.bullet.{j}",
                bullet,
                TEXT_X + BULLET_INDENT,
                y,
                TEXT_W - BULLET_INDENT,
                bullet_size,
                color=bullet_color,
                line_height=1.5,
            )
            if element:
                y += element.h

    builder.image("photo", content.photo, PHOTO_X, PHOTO_Y, PHOTO_W, PHOTO_H)
    builder.text(
        "caption",
        content.caption,
        PHOTO_X,
        PHOTO_Y + PHOTO_H + 8,
        PHOTO_W,
        11,
        color=defaults.body_color,
        max_lines=3,
    )
    return builder.build()
