"""Map + text resolvers: property list, stacked cards and percentage callouts.

The list and card variants shrink their text with a uniform scale factor. Font
sizes derive from the scale by rounding and are floored at per-role minimums.
"""

import math
from typing import List, Tuple

from deckcanvas.resolvers.common import (
    MARGIN,
    GeometryBuilder,
    ResolveContext,
    add_page_chrome,
    color_or,
    round_half_up,
)
from deckcanvas.schemas import (
    ImageFit,
    MapTextCardContent,
    MapTextListContent,
    MapTextOverlayContent,
    PropertyGroup,
    ResolvedGeometry,
    TextAlign,
    TextCard,
)
from deckcanvas.services.autofit import run_fit
from deckcanvas.services.geometry import percent_to_pixel

AREA_TOP = 60
AREA_H = 450

SCALE_STEP = 0.05

# === Cards ===

CARD_MAP_W = 420
CARD_COLUMN_X = 470
CARD_COLUMN_W = 460
CARD_PADDING = 12
CARD_HEADING_GAP = 6
CARD_BULLET_GAP = 2
CARD_MIN_SCALE = 0.65
ARROW_BLOCK = 28
ARROW_SPACER = 8


def card_font_sizes(scale: float) -> Tuple[int, int]:
    """(heading, bullet) sizes for a card scale."""
    return max(11, round_half_up(14 * scale)), max(8, round_half_up(11 * scale))


def _card_height(builder: GeometryBuilder, card: TextCard, scale: float) -> float:
    heading_size, bullet_size = card_font_sizes(scale)
    inner = CARD_COLUMN_W - 2 * CARD_PADDING
    height = 2 * CARD_PADDING
    if card.heading.strip():
        height += builder.text_height(card.heading, inner, heading_size, 1.3, bold=True)
        if card.bullets:
            height += CARD_HEADING_GAP
    for i, bullet in enumerate(card.bullets):
        height += builder.text_height(f"– {bullet}", inner, bullet_size, 1.4)
        if i:
            height += CARD_BULLET_GAP
    return height


def _connector_height(arrows: List[bool], gap_index: int) -> float:
    shown = gap_index < len(arrows) and arrows[gap_index]
    return ARROW_BLOCK if shown else ARROW_SPACER


def _cards_height(builder: GeometryBuilder, content: MapTextCardContent, scale: float) -> float:
    if not content.cards:
        return 0
    total = sum(_card_height(builder, card, scale) for card in content.cards)
    total += sum(_connector_height(content.arrows, i) for i in range(len(content.cards) - 1))
    return total


def resolve_cards(content: MapTextCardContent, ctx: ResolveContext) -> ResolvedGeometry:
    """Map on the left, vertically centered cards with optional arrows on the right."""
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)
    builder.image("map", content.map_image, MARGIN, AREA_TOP, CARD_MAP_W, AREA_H, fit=ImageFit.CONTAIN)

    state = run_fit(
        lambda scale: _cards_height(builder, content, scale),
        AREA_H,
        1.0,
        SCALE_STEP,
        CARD_MIN_SCALE,
        name="map_text_card_scale",
    )
    scale = state.value
    heading_size, bullet_size = card_font_sizes(scale)
    builder.fit.update({"scale": scale, "heading_font_size": heading_size, "bullet_font_size": bullet_size})

    total = _cards_height(builder, content, scale)
    y = AREA_TOP + max(0.0, (AREA_H - total) / 2)
    inner = CARD_COLUMN_W - 2 * CARD_PADDING
    arrow_color = color_or(content.arrow_color, defaults.accent_color)

    for i, card in enumerate(content.cards):
        height = _card_height(builder, card, scale)
        builder.rect(f"card.{i}", CARD_COLUMN_X, y, CARD_COLUMN_W, height, fill=defaults.card_background, radius=4)
        text_y = y + CARD_PADDING
        heading = builder.text(
            f"card.{i}.heading",
            card.heading,
            CARD_COLUMN_X + CARD_PADDING,
            text_y,
            inner,
            heading_size,
            bold=True,
            heading=True,
            line_height=1.3,
        )
        if heading:
            text_y += heading.h + (CARD_HEADING_GAP if card.bullets else 0)
        for j, bullet in enumerate(card.bullets):
            if j:
                text_y += CARD_BULLET_GAP
            element = builder.text(
                f"card.{i}.bullet.{j}",
                f"– {bullet}",
                CARD_COLUMN_X + CARD_PADDING,
                text_y,
                inner,
                bullet_size,
                color=defaults.body_color,
                line_height=1.4,
            )
            text_y += element.h
        y += height

        if i < len(content.cards) - 1:
            gap = _connector_height(content.arrows, i)
            if gap == ARROW_BLOCK:
                center_x = CARD_COLUMN_X + CARD_COLUMN_W / 2
                builder.line(
                    f"connector.{i}",
                    center_x,
                    y + 4,
                    center_x,
                    y + 24,
                    arrow_color,
                    width=2,
                    marker_end=True,
                )
            y += gap

    return builder.build()


# === Property list ===

LIST_MAP_W = 380
LIST_COLUMN_X = 420
LIST_COLUMN_W = 510
LIST_HEADING_H = 38
LIST_GROUP_W = 245
LIST_GROUP_X = (LIST_COLUMN_X, LIST_COLUMN_X + 260)
LIST_GROUP_GAP = 10
LIST_MIN_SCALE = 0.6
SUMMARY_H = 80


def list_font_sizes(scale: float) -> Tuple[int, int]:
    """(group label, item) sizes for a list scale."""
    return max(8, round_half_up(11 * scale)), max(7, round_half_up(10 * scale))


def split_groups(groups: List[PropertyGroup]) -> Tuple[List[PropertyGroup], List[PropertyGroup]]:
    """First half (rounded up) fills the left column."""
    half = math.ceil(len(groups) / 2)
    return groups[:half], groups[half:]


def _group_height(builder: GeometryBuilder, group: PropertyGroup, scale: float) -> float:
    label_size, item_size = list_font_sizes(scale)
    height = 0.0
    if group.label.strip():
        height += builder.text_height(group.label, LIST_GROUP_W, label_size, 1.3, bold=True) + 4
    for item in group.items:
        height += builder.text_height(f"・{item}", LIST_GROUP_W, item_size, 1.4)
    return height


def _column_height(builder: GeometryBuilder, groups: List[PropertyGroup], scale: float) -> float:
    if not groups:
        return 0
    return sum(_group_height(builder, group, scale) for group in groups) + LIST_GROUP_GAP * (len(groups) - 1)


def resolve_list(content: MapTextListContent, ctx: ResolveContext) -> ResolvedGeometry:
    """Map on the left, property groups in two columns and an optional summary block."""
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)
    builder.image("map", content.map_image, MARGIN, AREA_TOP, LIST_MAP_W, AREA_H, fit=ImageFit.CONTAIN)
    builder.text(
        "heading",
        content.heading,
        LIST_COLUMN_X,
        AREA_TOP,
        LIST_COLUMN_W,
        18,
        bold=True,
        heading=True,
        max_lines=1,
    )

    columns = split_groups(content.groups)
    property_height = AREA_H - LIST_HEADING_H - (SUMMARY_H if content.show_summary_table else 0)
    state = run_fit(
        lambda scale: max(_column_height(builder, column, scale) for column in columns),
        property_height,
        1.0,
        SCALE_STEP,
        LIST_MIN_SCALE,
        name="map_text_list_scale",
    )
    scale = state.value
    label_size, item_size = list_font_sizes(scale)
    builder.fit.update({"scale": scale, "group_font_size": label_size, "item_font_size": item_size})

    group_index = 0
    for column_x, column in zip(LIST_GROUP_X, columns):
        y = AREA_TOP + LIST_HEADING_H
        for group in column:
            label = builder.text(
                f"group.{group_index}.label",
                group.label,
                column_x,
                y,
                LIST_GROUP_W,
                label_size,
                bold=True,
                heading=True,
                line_height=1.3,
            )
            if label:
                y += label.h + 4
            for j, item in enumerate(group.items):
                element = builder.text(
                    f"group.{group_index}.item.{j}",
                    f"・{item}",
                    column_x,
                    y,
                    LIST_GROUP_W,
                    item_size,
                    color=defaults.body_color,
                    line_height=1.4,
                )
                if element:
                    y += element.h
            y += LIST_GROUP_GAP
            group_index += 1

    if content.show_summary_table and content.summary:
        _add_summary(builder, content)

    return builder.build()


def _add_summary(builder: GeometryBuilder, content: MapTextListContent) -> None:
    """Label/value rows in the block reserved at the bottom of the right column."""
    defaults = builder.ctx.defaults
    top = AREA_TOP + AREA_H - SUMMARY_H
    row_h = SUMMARY_H / len(content.summary)
    label_w = LIST_COLUMN_W * 0.4
    value_w = LIST_COLUMN_W * 0.6
    builder.line("summary.rule", LIST_COLUMN_X, top, LIST_COLUMN_X + LIST_COLUMN_W, top, defaults.rule_color)
    for i, row in enumerate(content.summary):
        row_top = top + i * row_h
        builder.text(
            f"summary.{i}.label", row.label, LIST_COLUMN_X, row_top + 4, label_w, 10, color=defaults.body_color
        )
        value = builder.text(
            f"summary.{i}.value",
            row.value,
            LIST_COLUMN_X + label_w,
            row_top + 2,
            value_w,
            14,
            bold=True,
            heading=True,
            max_lines=1,
        )
        sub_top = row_top + 2 + (value.h if value else 0)
        builder.text(
            f"summary.{i}.subvalue",
            row.subvalue,
            LIST_COLUMN_X + label_w,
            sub_top,
            value_w,
            10,
            color=defaults.body_color,
            max_lines=1,
        )
        if i:
            builder.line(
                f"summary.{i}.rule", LIST_COLUMN_X, row_top, LIST_COLUMN_X + LIST_COLUMN_W, row_top, defaults.rule_color
            )


# === Overlay ===

OVERLAY_TOP = 64
OVERLAY_W = 900
OVERLAY_H = 456
CALLOUT_SIZE = 11
CALLOUT_PILL_H = 20


def resolve_overlay(content: MapTextOverlayContent, ctx: ResolveContext) -> ResolvedGeometry:
    """Full-width map with labelled dots placed by percentage of the map area."""
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)
    builder.image("map", content.map_image, MARGIN, OVERLAY_TOP, OVERLAY_W, OVERLAY_H, fit=ImageFit.CONTAIN)

    for i, callout in enumerate(content.callouts):
        if not callout.visible or not callout.label.strip():
            continue
        x = MARGIN + percent_to_pixel(callout.x, OVERLAY_W)
        y = OVERLAY_TOP + percent_to_pixel(callout.y, OVERLAY_H)
        color = color_or(callout.color, defaults.accent_color)
        builder.circle(f"callout.{i}.dot", x, y, 5, fill=color, stroke=defaults.card_background, stroke_width=1.5)
        label_w = builder.text_width(callout.label, CALLOUT_SIZE) + 2
        pill_x = x + 10
        pill_y = y - CALLOUT_PILL_H / 2
        builder.rect(
            f"callout.{i}.pill",
            pill_x,
            pill_y,
            label_w + 12,
            CALLOUT_PILL_H,
            fill=defaults.card_background,
            stroke=color,
            stroke_width=1,
            radius=4,
        )
        builder.text(
            f"callout.{i}.label",
            callout.label,
            pill_x + 6,
            pill_y + (CALLOUT_PILL_H - CALLOUT_SIZE * 1.2) / 2,
            label_w,
            CALLOUT_SIZE,
            align=TextAlign.LEFT,
            wrap=False,
        )

    return builder.build()
