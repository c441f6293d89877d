"""Multi-card grid resolver: cards alternate between two columns."""

from typing import List

from deckcanvas.resolvers.common import MARGIN, GeometryBuilder, ResolveContext, add_page_chrome, bullet_dot
from deckcanvas.schemas import GridCard, ImageFit, MultiCardGridContent, ResolvedGeometry
from deckcanvas.services.autofit import run_fit

AREA_TOP = 70
AREA_H = 445
COLUMN_W = 430
COLUMN_X = (MARGIN, MARGIN + 470)

ICON = 28
HEADING_SIZE = 15
TEXT_INDENT = 38
BULLET_TEXT_INDENT = TEXT_INDENT + 12
CARD_GAP = 20
BODY_LINE_HEIGHT = 1.5

BODY_FONT_SIZE = 12
MIN_BODY_FONT_SIZE = 9
FONT_STEP = 0.5


def split_columns(cards: List[GridCard]) -> List[List[GridCard]]:
    """Even indexes go left, odd indexes right."""
    return [cards[0::2], cards[1::2]]


def _header_height(builder: GeometryBuilder, card: GridCard) -> float:
    heading = builder.text_height(card.heading, COLUMN_W - TEXT_INDENT, HEADING_SIZE, 1.3, bold=True)
    return max(ICON, heading)


def _card_height(builder: GeometryBuilder, card: GridCard, size: float) -> float:
    height = _header_height(builder, card)
    if card.bullets:
        height += 6
    for bullet in card.bullets:
        height += 2 + builder.text_height(bullet, COLUMN_W - BULLET_TEXT_INDENT, size, BODY_LINE_HEIGHT)
    if card.paragraph.strip():
        height += 6 + builder.text_height(card.paragraph, COLUMN_W - TEXT_INDENT, size, BODY_LINE_HEIGHT)
    return height


def _column_height(builder: GeometryBuilder, cards: List[GridCard], size: float) -> float:
    if not cards:
        return 0
    return sum(_card_height(builder, card, size) for card in cards) + CARD_GAP * (len(cards) - 1)


def resolve(content: MultiCardGridContent, ctx: ResolveContext) -> ResolvedGeometry:
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)
    add_page_chrome(builder, content)

    columns = split_columns(content.cards)
    size = run_fit(
        lambda candidate: max(_column_height(builder, column, candidate) for column in columns),
        AREA_H,
        BODY_FONT_SIZE,
        FONT_STEP,
        MIN_BODY_FONT_SIZE,
        name="multi_card_body_font",
    ).value
    builder.fit["body_font_size"] = size

    for column_index, (column_x, cards) in enumerate(zip(COLUMN_X, columns)):
        y = AREA_TOP
        for position, card in enumerate(cards):
            index = position * 2 + column_index
            builder.image(f"card.{index}.icon", card.icon, column_x, y, ICON, ICON, fit=ImageFit.CONTAIN)
            header_h = _header_height(builder, card)
            heading_h = builder.text_height(card.heading, COLUMN_W - TEXT_INDENT, HEADING_SIZE, 1.3, bold=True)
            builder.text(
                f"card.{index}.heading",
                card.heading,
                column_x + TEXT_INDENT,
                y + (header_h - heading_h) / 2,
                COLUMN_W - TEXT_INDENT,
                HEADING_SIZE,
                bold=True,
                heading=True,
                line_height=1.3,
            )
            text_y = y + header_h + (6 if card.bullets else 0)
            for j, bullet in enumerate(card.bullets):
                text_y += 2
                bullet_dot(
                    builder, f"card.{index}.bullet.{j}.dot", column_x + TEXT_INDENT, text_y, size, defaults.ink_color
                )
                element = builder.text(
                    f"card.{index}.bullet.{j}",
                    bullet,
                    column_x + BULLET_TEXT_INDENT,
                    text_y,
                    COLUMN_W - BULLET_TEXT_INDENT,
                    size,
                    color=defaults.body_color,
                    line_height=BODY_LINE_HEIGHT,
                )
                if element:
                    text_y += element.h
            if card.paragraph.strip():
                builder.text(
                    f"card.{index}.paragraph",
                    card.paragraph,
                    column_x + TEXT_INDENT,
                    text_y + 6,
                    COLUMN_W - TEXT_INDENT,
                    size,
                    color=defaults.body_color,
                    line_height=BODY_LINE_HEIGHT,
                )
            y += _card_height(builder, card, size) + CARD_GAP

    return builder.build()
