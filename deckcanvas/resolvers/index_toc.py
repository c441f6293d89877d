"""Index (table of contents) resolver."""

from typing import List

from deckcanvas.resolvers.common import WIDE_MARGIN, GeometryBuilder, ResolveContext, add_wide_header
from deckcanvas.schemas import IndexContent, IndexSection, ResolvedGeometry, TextAlign
from deckcanvas.services.autofit import run_fit

TOC_TOP = 100
TOC_BOTTOM = 510
TOC_W = 580
PAGE_COLUMN_W = 60

SECTION_SIZE = 14
SECTION_PADDING_TOP = 24
SECTION_PADDING_BOTTOM = 4

ENTRY_SIZE = 13
MIN_ENTRY_SIZE = 9
ENTRY_STEP = 0.5
ENTRY_H = 32
MIN_ENTRY_H = 22

IMAGE = (680, 100, 230, 370)


def is_flat(sections: List[IndexSection]) -> bool:
    """A single untitled section renders without section headings."""
    return len(sections) == 1 and not sections[0].title.strip()


def entry_height(size: float) -> float:
    return max(MIN_ENTRY_H, ENTRY_H * size / ENTRY_SIZE)


def _section_heading_height(index: int) -> float:
    return (0 if index == 0 else SECTION_PADDING_TOP) + SECTION_SIZE * 1.2 + SECTION_PADDING_BOTTOM


def _toc_height(sections: List[IndexSection], size: float) -> float:
    flat = is_flat(sections)
    height = 0.0
    for i, section in enumerate(sections):
        if not flat:
            height += _section_heading_height(i)
        height += len(section.entries) * entry_height(size)
    return height


def resolve(content: IndexContent, ctx: ResolveContext) -> ResolvedGeometry:
    builder = GeometryBuilder(ctx, content.template)
    add_wide_header(builder, content.year, content.label)

    sections = [section for section in content.sections if section.title.strip() or section.entries]
    flat = is_flat(sections)
    size = run_fit(
        lambda candidate: _toc_height(sections, candidate),
        TOC_BOTTOM - TOC_TOP,
        ENTRY_SIZE,
        ENTRY_STEP,
        MIN_ENTRY_SIZE,
        name="index_entry_font",
    ).value
    row_h = entry_height(size)
    builder.fit.update({"entry_font_size": size, "entry_height": row_h})

    y = TOC_TOP
    for i, section in enumerate(sections):
        if not flat:
            y += 0 if i == 0 else SECTION_PADDING_TOP
            builder.text(
                f"section.{i}.title",
                section.title,
                WIDE_MARGIN,
                y,
                TOC_W,
                SECTION_SIZE,
                bold=True,
                heading=True,
                max_lines=1,
            )
            y += SECTION_SIZE * 1.2 + SECTION_PADDING_BOTTOM
        for j, entry in enumerate(section.entries):
            text_top = y + (row_h - size * 1.2) / 2
            builder.text(
                f"section.{i}.entry.{j}.label",
                entry.label,
                WIDE_MARGIN,
                text_top,
                TOC_W - PAGE_COLUMN_W,
                size,
                max_lines=1,
            )
            builder.text(
                f"section.{i}.entry.{j}.page",
                entry.page,
                WIDE_MARGIN + TOC_W - PAGE_COLUMN_W,
                text_top,
                PAGE_COLUMN_W,
                size,
                align=TextAlign.RIGHT,
                wrap=False,
            )
            y += row_h

    x, top, w, h = IMAGE
    builder.image("image", content.image, x, top, w, h, radius=w / 2)
    return builder.build()
