"""Resolvers for text-led pages: cover, section divider, disclaimer, contact
and value proposition.

Inline ``**bold**`` markers are accepted in headlines and bodies and are
stripped; the whole block is set in one weight.
"""

from deckcanvas.resolvers.common import (
    WIDE_MARGIN,
    GeometryBuilder,
    ResolveContext,
    add_wide_header,
    color_or,
    strip_bold_markers,
)
from deckcanvas.schemas import (
    ContactContent,
    CoverContent,
    DisclaimerContent,
    ImageFit,
    ResolvedGeometry,
    SectionDividerContent,
    TextAlign,
    ValuePropositionContent,
)
from deckcanvas.services.autofit import estimate_line_count, run_fit

# === Cover ===

COVER_HEADER_H = 56
COVER_MARGIN = 40
HEADLINE_X = 104
HEADLINE_CENTER_Y = 291
HEADLINE_W = 400
HEADLINE_SIZE = 42
HEADLINE_LINE_HEIGHT = 1.15
HERO_X = 576
HERO_SIZE = 280


def resolve_cover(content: CoverContent, ctx: ResolveContext) -> ResolvedGeometry:
    """Headline vertically centered on y=291 next to a circular hero image."""
    defaults = ctx.defaults
    width = ctx.canvas.width
    builder = GeometryBuilder(ctx, content.template)
    builder.line("header.rule", 0, COVER_HEADER_H, width, COVER_HEADER_H, defaults.rule_color)
    builder.text(
        "chrome.wordmark", defaults.brand_name, COVER_MARGIN, 13, 240, 18, bold=True, heading=True, wrap=False
    )
    builder.text(
        "chrome.year",
        content.year or defaults.year,
        width - COVER_MARGIN - 120,
        18,
        120,
        14,
        align=TextAlign.RIGHT,
        wrap=False,
    )

    headline = strip_bold_markers(content.headline)
    lines = builder.wrap(headline, HEADLINE_W, HEADLINE_SIZE, bold=True)
    block_h = len(lines) * HEADLINE_SIZE * HEADLINE_LINE_HEIGHT
    builder.text(
        "headline",
        headline,
        HEADLINE_X,
        HEADLINE_CENTER_Y - block_h / 2,
        HEADLINE_W,
        HEADLINE_SIZE,
        bold=True,
        heading=True,
        line_height=HEADLINE_LINE_HEIGHT,
    )
    builder.image(
        "hero",
        content.hero_image,
        HERO_X,
        HEADLINE_CENTER_Y - HERO_SIZE / 2,
        HERO_SIZE,
        HERO_SIZE,
        radius=HERO_SIZE / 2,
        placeholder_stroke=False,
    )
    return builder.build()


# === Section divider ===

DIVIDER_TOP = 200
DIVIDER_H = 130
DIVIDER_LEFT_W = 300
DIVIDER_BAR_X = 310
DIVIDER_BAR_W = 6
DIVIDER_TITLE_X = 340
DIVIDER_TITLE_W = 560


def resolve_section_divider(content: SectionDividerContent, ctx: ResolveContext) -> ResolvedGeometry:
    """Right-aligned label and number, accent bar, then the section title."""
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)

    label_h = builder.text_height(content.label, DIVIDER_LEFT_W, 14, 1.2, bold=True)
    number_h = builder.text_height(content.number, DIVIDER_LEFT_W, 48, 1.1, bold=True)
    top = DIVIDER_TOP + (DIVIDER_H - label_h - number_h) / 2
    builder.text(
        "label", content.label, 0, top, DIVIDER_LEFT_W, 14, bold=True, heading=True, align=TextAlign.RIGHT
    )
    builder.text(
        "number",
        content.number,
        0,
        top + label_h,
        DIVIDER_LEFT_W,
        48,
        bold=True,
        heading=True,
        line_height=1.1,
        align=TextAlign.RIGHT,
    )
    builder.rect(
        "bar",
        DIVIDER_BAR_X,
        DIVIDER_TOP,
        DIVIDER_BAR_W,
        DIVIDER_H,
        fill=color_or(content.bar_color, defaults.accent_color),
    )
    title_h = builder.text_height(content.title, DIVIDER_TITLE_W, 36, 1.2)
    builder.text(
        "title",
        content.title,
        DIVIDER_TITLE_X,
        DIVIDER_TOP + (DIVIDER_H - title_h) / 2,
        DIVIDER_TITLE_W,
        36,
    )
    return builder.build()


# === Disclaimer ===

DISCLAIMER_TOP = 110
DISCLAIMER_BOTTOM = 510
DISCLAIMER_W = 864
DISCLAIMER_LINE_HEIGHT = 1.6


def resolve_disclaimer(content: DisclaimerContent, ctx: ResolveContext) -> ResolvedGeometry:
    """Legal text fitted from 11 down to 9 in half-unit steps."""
    builder = GeometryBuilder(ctx, content.template)
    add_wide_header(builder, content.year, content.label or "Disclaimer")

    size = run_fit(
        lambda candidate: builder.text_height(content.text, DISCLAIMER_W, candidate, DISCLAIMER_LINE_HEIGHT),
        DISCLAIMER_BOTTOM - DISCLAIMER_TOP,
        11,
        0.5,
        9,
        name="disclaimer_font",
    ).value
    builder.fit["font_size"] = size
    builder.text(
        "text",
        content.text,
        WIDE_MARGIN,
        DISCLAIMER_TOP,
        DISCLAIMER_W,
        size,
        line_height=DISCLAIMER_LINE_HEIGHT,
    )
    return builder.build()


# === Contact ===

LOGO_CENTER = (480, 230)
LOGO_SIZE = 200
CONTACT_TOP = 415
URL_TOP = 490


def resolve_contact(content: ContactContent, ctx: ResolveContext) -> ResolvedGeometry:
    defaults = ctx.defaults
    width = ctx.canvas.width
    builder = GeometryBuilder(ctx, content.template)
    add_wide_header(builder, content.year)

    cx, cy = LOGO_CENTER
    radius = LOGO_SIZE / 2
    builder.circle("logo.frame", cx, cy, radius, fill=defaults.card_background)
    builder.image(
        "logo",
        content.logo_image,
        cx - radius,
        cy - radius,
        LOGO_SIZE,
        LOGO_SIZE,
        radius=radius,
        placeholder_stroke=False,
    )
    builder.circle("logo.border", cx, cy, radius, stroke=defaults.rule_color, stroke_width=1)

    y = CONTACT_TOP
    name = builder.text(
        "company_name", content.company_name, WIDE_MARGIN, y, 420, 16, bold=True, heading=True, max_lines=1
    )
    if name:
        y += name.h + 6
    for i, detail in enumerate(content.details):
        element = builder.text(f"detail.{i}", detail, WIDE_MARGIN, y, 420, 13, max_lines=1)
        if element:
            y += element.h + 3

    builder.text(
        "url",
        content.url,
        width - WIDE_MARGIN - 400,
        URL_TOP,
        400,
        13,
        color=defaults.link_color,
        align=TextAlign.RIGHT,
        wrap=False,
    )
    return builder.build()


# === Value proposition ===

ACCENT_BAR = (48, 155, 100, 8)
BADGE_TOP = 195
BADGE_SIZE = 46
BADGE_ICON = 28
BADGE_LABEL_GAP = 8
BADGE_SPACING = 60
BADGE_COUNT = 3
BODY_TOP = 330
BODY_W = 864


def badge_label_size(label: str) -> int:
    return 20 if len(label) > 15 else 26


def value_body_size(body: str) -> int:
    """Body size chosen from the estimated line count at 80 characters a line."""
    lines = estimate_line_count(body, 80)
    if lines > 5:
        return 14
    if lines > 3:
        return 15
    return 18


def resolve_value_proposition(content: ValuePropositionContent, ctx: ResolveContext) -> ResolvedGeometry:
    """Accent bar, a row of up to three badges and a sized body paragraph."""
    defaults = ctx.defaults
    builder = GeometryBuilder(ctx, content.template)

    if content.accent_bar_visible:
        x, y, w, h = ACCENT_BAR
        builder.rect("accent_bar", x, y, w, h, fill=color_or(content.accent_bar_color, defaults.accent_color), radius=2)

    x = WIDE_MARGIN
    center_y = BADGE_TOP + BADGE_SIZE / 2
    for i, badge in enumerate(content.badges[:BADGE_COUNT]):
        builder.rect(f"badge.{i}", x, BADGE_TOP, BADGE_SIZE, BADGE_SIZE, fill=defaults.accent_color, radius=8)
        inset = (BADGE_SIZE - BADGE_ICON) / 2
        if ctx.has_asset(badge.icon):
            builder.image(
                f"badge.{i}.icon",
                badge.icon,
                x + inset,
                BADGE_TOP + inset,
                BADGE_ICON,
                BADGE_ICON,
                fit=ImageFit.CONTAIN,
            )
        else:
            # check mark drawn on a 24 unit grid
            ox, oy = x + (BADGE_SIZE - 24) / 2, BADGE_TOP + (BADGE_SIZE - 24) / 2
            builder.line(f"badge.{i}.check.0", ox + 5, oy + 12, ox + 10, oy + 17, defaults.card_background, width=3)
            builder.line(f"badge.{i}.check.1", ox + 10, oy + 17, ox + 19, oy + 7, defaults.card_background, width=3)

        size = badge_label_size(badge.label)
        label_x = x + BADGE_SIZE + BADGE_LABEL_GAP
        label_w = builder.text_width(badge.label, size, bold=True) + 2
        builder.text(
            f"badge.{i}.label",
            badge.label,
            label_x,
            center_y - size * 1.2 / 2,
            label_w,
            size,
            bold=True,
            heading=True,
            wrap=False,
        )
        x = label_x + label_w + BADGE_SPACING

    body = strip_bold_markers(content.body)
    size = value_body_size(body)
    builder.fit["body_font_size"] = size
    builder.text("body", body, WIDE_MARGIN, BODY_TOP, BODY_W, size, heading=True, line_height=1.6)
    return builder.build()
