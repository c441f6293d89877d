"""Unit tests for table, card, text, media and diagram resolvers and the registry."""

import pytest

from deckcanvas.exceptions import UnknownTemplateError
from deckcanvas.resolvers.card_grid import resolve as resolve_card_grid
from deckcanvas.resolvers.card_grid import split_columns
from deckcanvas.resolvers.diagram import resolve as resolve_diagram
from deckcanvas.resolvers.index_toc import resolve as resolve_index
from deckcanvas.resolvers.media import (
    before_after_grid,
    entry_height,
    photo_slots,
    resolve_before_after,
    resolve_logos_text_table,
    resolve_text_images,
)
from deckcanvas.resolvers.registry import RESOLVERS, resolve_content, resolve_page
from deckcanvas.resolvers.tables import (
    comparison_metrics,
    data_row_height,
    normalize_column_widths,
    resolve_comparison_table,
    resolve_data_table,
)
from deckcanvas.resolvers.text_chart import bar_layout, format_value
from deckcanvas.resolvers.text_chart import resolve as resolve_text_chart
from deckcanvas.resolvers.text_pages import (
    badge_label_size,
    resolve_contact,
    resolve_cover,
    resolve_disclaimer,
    resolve_value_proposition,
    value_body_size,
)
from deckcanvas.schemas import (
    BeforeAfterContent,
    ComparisonTableContent,
    ContactContent,
    CoverContent,
    DataTableContent,
    DiagramContent,
    DisclaimerContent,
    ElementKind,
    IndexContent,
    LogosTextTableContent,
    MultiCardGridContent,
    Page,
    TextChartContent,
    TextImagesContent,
    ValuePropositionContent,
)
from deckcanvas.services.template_catalog import TEMPLATE_CATALOG

LOREM = "Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod tempor. "


class TestDataTable:
    """Tests for the data-table resolver."""

    @pytest.mark.parametrize(
        "widths,expected",
        [
            ([50, 50], [50, 50]),
            ([0, 0], [50, 50]),
            ([150, 0], [100, 0]),
            ([0, -300], [50, 50]),
            ([10, 20, 40], [20, 30, 50]),
        ],
    )
    def test_normalize_column_widths(self, widths, expected):
        assert normalize_column_widths(widths) == pytest.approx(expected)

    def test_normalize_no_columns(self):
        assert normalize_column_widths([]) == []

    @pytest.mark.parametrize("rows,footnotes,expected", [(10, 0, 34), (20, 0, 20), (10, 2, 32), (0, 0, 34)])
    def test_row_height(self, rows, footnotes, expected):
        assert data_row_height(rows, footnotes) == expected

    def test_missing_cells_marked(self, ctx):
        """Test that empty and absent cells show the missing-translation marker."""
        content = DataTableContent(
            columns=[{"header": "Name", "width": 50}, {"header": "Value", "width": 50}],
            rows=[{"cells": ["Alpha", ""]}, {"cells": ["Beta"], "highlighted": True}],
        )
        geometry = resolve_data_table(content, ctx)
        missing = geometry.find("row.0.cell.1")
        assert missing.lines == ("[no translation]",)
        assert missing.style.color == ctx.defaults.missing_text_color
        assert geometry.find("row.1.cell.1").lines == ("[no translation]",)
        assert geometry.find("row.1.highlight") is not None
        assert geometry.find("row.0.highlight") is None
        assert geometry.fit["row_height"] == 34

    def test_blank_footnotes_reserve_their_line(self, ctx):
        content = DataTableContent(
            columns=[{"header": "Name", "width": 100}],
            rows=[{"cells": [f"row {i}"]} for i in range(10)],
            footnotes=[" ", "Source: survey"],
        )
        geometry = resolve_data_table(content, ctx)
        assert geometry.fit["row_height"] == 32
        assert geometry.find("footnote.0") is None
        assert geometry.find("footnote.1").y == 68 + 57 + 11 * 32 + 8 + 17

    def test_columns_follow_normalized_widths(self, ctx):
        content = DataTableContent(columns=[{"header": "A", "width": 50}, {"header": "B", "width": 50}])
        geometry = resolve_data_table(content, ctx)
        assert geometry.find("header.1").x == pytest.approx(30 + 450 + 8)

    def test_columns_inferred_from_rows(self, ctx):
        geometry = resolve_data_table(DataTableContent(rows=[{"cells": ["a", "b", "c"]}]), ctx)
        assert geometry.find("row.0.cell.2").lines == ("c",)

    def test_empty_table_has_no_header(self, ctx):
        assert resolve_data_table(DataTableContent(heading="Empty"), ctx).find("header") is None


class TestComparisonTable:
    """Tests for the comparison-table resolver."""

    @pytest.mark.parametrize(
        "rows,citation,expected",
        [(5, False, (40, 12)), (12, False, (30, 9)), (12, True, (28, 9)), (20, False, (28, 9))],
    )
    def test_metrics(self, rows, citation, expected):
        assert comparison_metrics(rows, citation) == expected

    def test_brand_column_and_citation(self, ctx):
        content = ComparisonTableContent(
            competitor_label="Others",
            rows=[{"label": "Speed", "ours": "Fast", "theirs": "Slow"}],
            source_citation="Source: survey",
        )
        geometry = resolve_comparison_table(content, ctx)
        assert geometry.find("header.ours").lines == ("DeckCanvas",)
        assert geometry.find("row.0.cell.1").lines == ("Fast",)
        assert geometry.find("citation") is not None
        assert geometry.fit == {"row_height": 40, "font_size": 12}


class TestCardGrid:
    """Tests for the multi-card grid resolver."""

    def test_split_columns_alternates(self):
        cards = MultiCardGridContent(cards=[{"heading": str(i)} for i in range(5)]).cards
        left, right = split_columns(cards)
        assert [card.heading for card in left] == ["0", "2", "4"]
        assert [card.heading for card in right] == ["1", "3"]

    def test_short_cards_keep_default_size(self, ctx):
        geometry = resolve_card_grid(MultiCardGridContent(cards=[{"heading": "One", "bullets": ["a"]}]), ctx)
        assert geometry.fit["body_font_size"] == 12

    def test_long_cards_shrink_to_minimum(self, ctx):
        cards = [{"heading": f"Card {i}", "bullets": [LOREM * 2] * 3, "paragraph": LOREM * 3} for i in range(6)]
        geometry = resolve_card_grid(MultiCardGridContent(cards=cards), ctx)
        assert geometry.fit["body_font_size"] == 9

    def test_icon_placeholder(self, ctx):
        geometry = resolve_card_grid(MultiCardGridContent(cards=[{"heading": "One", "icon": "missing"}]), ctx)
        assert geometry.find("card.0.icon.placeholder") is not None


class TestTextPages:
    """Tests for cover, disclaimer, contact and value proposition."""

    def test_cover_headline_centered_and_unbolded(self, ctx):
        geometry = resolve_cover(CoverContent(headline="Build **better** decks"), ctx)
        headline = geometry.find("headline")
        assert "".join(headline.lines).count("*") == 0
        assert headline.y + headline.h / 2 == pytest.approx(291)

    def test_cover_hero_circle(self, ctx_with_images):
        geometry = resolve_cover(CoverContent(hero_image="photo-a"), ctx_with_images)
        hero = geometry.find("hero")
        assert hero.kind == ElementKind.IMAGE
        assert hero.style.radius == 140

    def test_cover_hero_placeholder_is_circle(self, ctx):
        geometry = resolve_cover(CoverContent(hero_image="missing"), ctx)
        assert geometry.find("hero.placeholder").kind == ElementKind.CIRCLE

    def test_disclaimer_short_text_default_size(self, ctx):
        geometry = resolve_disclaimer(DisclaimerContent(text="Short notice."), ctx)
        assert geometry.fit["font_size"] == 11
        assert geometry.find("chrome.label").lines == ("Disclaimer",)

    def test_disclaimer_long_text_minimum_size(self, ctx):
        geometry = resolve_disclaimer(DisclaimerContent(text=LOREM * 80), ctx)
        assert geometry.fit["font_size"] == 9

    def test_contact_details_skip_empty(self, ctx):
        content = ContactContent(company_name="Acme", details=["Tokyo", "", "+81 3 0000"], url="acme.example")
        geometry = resolve_contact(content, ctx)
        assert geometry.find("detail.1") is None
        assert geometry.find("detail.2").lines == ("+81 3 0000",)
        assert geometry.find("url").style.color == ctx.defaults.link_color

    @pytest.mark.parametrize("length,expected", [(10, 18), (240, 18), (400, 15), (500, 14)])
    def test_value_body_size(self, length, expected):
        assert value_body_size("x" * length) == expected

    def test_badge_label_size(self):
        assert badge_label_size("Fast") == 26
        assert badge_label_size("Remarkably reliable") == 20

    def test_value_proposition_badges(self, ctx):
        content = ValuePropositionContent(
            badges=[{"label": "Fast"}, {"label": "Safe"}, {"label": "Simple"}, {"label": "Extra"}],
            body="We **ship** quickly.",
            accent_bar_visible=False,
        )
        geometry = resolve_value_proposition(content, ctx)
        assert geometry.find("accent_bar") is None
        assert geometry.find("badge.2.label") is not None
        assert geometry.find("badge.3") is None
        assert geometry.find("badge.0.check.0") is not None
        assert geometry.find("body").lines == ("We ship quickly.",)
        assert geometry.fit["body_font_size"] == 18


class TestIndex:
    """Tests for the index resolver."""

    def test_flat_index_has_no_section_titles(self, ctx):
        content = IndexContent(sections=[{"entries": [{"label": "Intro", "page": "3"}]}])
        geometry = resolve_index(content, ctx)
        assert geometry.by_prefix("section.0.title") == []
        assert geometry.find("section.0.entry.0.page").lines == ("3",)
        assert geometry.fit == {"entry_font_size": 13, "entry_height": 32}

    def test_long_index_shrinks(self, ctx):
        entries = [{"label": f"Entry {i}", "page": str(i)} for i in range(40)]
        geometry = resolve_index(IndexContent(sections=[{"title": "All", "entries": entries}]), ctx)
        assert geometry.fit["entry_font_size"] == 9
        assert geometry.fit["entry_height"] == pytest.approx(32 * 9 / 13)
        assert geometry.find("section.0.title") is not None

    def test_pill_image_placeholder(self, ctx):
        geometry = resolve_index(IndexContent(image="missing"), ctx)
        placeholder = geometry.find("image.placeholder")
        assert placeholder.kind == ElementKind.RECT
        assert placeholder.style.radius == 115


class TestDiagram:
    """Tests for the diagram resolver."""

    def test_only_headed_branches_placed(self, ctx):
        branches = [{"heading": "A"}, {"body": "no heading"}, {"heading": "B"}, {"heading": "C"}, {"heading": "D"}]
        geometry = resolve_diagram(DiagramContent(branches=branches), ctx)
        headings = [element.lines[0] for element in geometry.by_prefix("branch.") if element.id.endswith(".heading")]
        assert headings == ["A", "B", "C"]

    def test_branch_line_starts_on_logo_circle(self, ctx):
        geometry = resolve_diagram(DiagramContent(branches=[{"heading": "A"}]), ctx)
        line = geometry.find("branch.0.line")
        distance = ((line.x - 170) ** 2 + (line.y - 270) ** 2) ** 0.5
        assert distance == pytest.approx(80)
        assert (line.x2, line.y2) == (380, 90)

    def test_logo_with_frame_when_available(self, ctx_with_images):
        geometry = resolve_diagram(DiagramContent(logo_image="logo"), ctx_with_images)
        assert geometry.find("logo.frame") is not None
        assert geometry.find("logo").kind == ElementKind.IMAGE

    def test_logo_placeholder_circle(self, ctx):
        geometry = resolve_diagram(DiagramContent(), ctx)
        assert geometry.find("logo.placeholder").kind == ElementKind.CIRCLE


class TestTextChart:
    """Tests for the text + chart resolver."""

    def test_bar_layout_caps_width(self):
        bars = bar_layout(2, 360)
        assert [bar.w for bar in bars] == [50, 50]
        assert bars[0].x == pytest.approx((360 - 124) / 2 + 8)

    def test_bar_layout_narrow_gap(self):
        bars = bar_layout(10, 360)
        assert bars[1].x - bars[0].x == pytest.approx(bars[0].w + 4)

    def test_format_value(self):
        assert format_value(12.0) == "12"
        assert format_value(2.5) == "2.5"

    def test_chart_bars_scaled_to_peak(self, ctx):
        content = TextChartContent(bars=[{"label": "A", "value": 50}, {"label": "B", "value": 100}], unit="%")
        geometry = resolve_text_chart(content, ctx)
        assert geometry.find("chart.bar.1").h == pytest.approx(280)
        assert geometry.find("chart.bar.0").h == pytest.approx(140)
        assert geometry.find("chart.bar.1.value").lines == ("100%",)
        assert geometry.find("chart.grid.4.label").lines == ("100%",)

    def test_image_mode(self, ctx):
        geometry = resolve_text_chart(TextChartContent(mode="image", caption="Figure 1"), ctx)
        assert geometry.find("image.placeholder") is not None
        assert geometry.by_prefix("chart.") == []


class TestMedia:
    """Tests for text-images, before-after and logos table."""

    def test_photo_slots_depend_on_logo(self):
        assert photo_slots(1, False)[0].y == 95
        assert photo_slots(1, True)[0].y == 185
        assert len(photo_slots(2, False)) == 2
        assert photo_slots(2, False)[1].x == 488 + 219 + 4

    def test_text_images_logo_pushes_photos(self, ctx_with_images):
        content = TextImagesContent(logo_image="logo", photos=["photo-a", "photo-b", "ignored"])
        geometry = resolve_text_images(content, ctx_with_images)
        assert geometry.find("logo").kind == ElementKind.IMAGE
        assert geometry.find("photo.1").y == 185
        assert geometry.find("photo.2") is None

    @pytest.mark.parametrize("layout,cells,arrows", [("2x2", 4, 2), ("1x2", 2, 1), ("2x1", 2, 1)])
    def test_fixed_layouts(self, layout, cells, arrows):
        rects, lines = before_after_grid(layout, 0)
        assert len(rects) == cells
        assert len(lines) == arrows

    def test_freeform_layout(self):
        rects, lines = before_after_grid("freeform", 11)
        assert len(rects) == 8
        assert lines == []
        assert before_after_grid("freeform", 0) == ([], [])

    def test_before_after_arrow_between_cells(self, ctx):
        geometry = resolve_before_after(BeforeAfterContent(layout="1x2"), ctx)
        before, after = geometry.find("cell.0.placeholder"), geometry.find("cell.1.placeholder")
        arrow = geometry.find("arrow.0")
        assert before.x + before.w < arrow.x < arrow.x2 < after.x

    def test_captions_shrink_images(self, ctx):
        content = BeforeAfterContent(layout="1x2", cells=[{"caption": "Before"}, {"caption": "After"}])
        geometry = resolve_before_after(content, ctx)
        assert geometry.find("cell.0.placeholder").h == pytest.approx(400)
        assert geometry.find("cell.1.caption").lines == ("After",)

    def test_logo_table_entry_height(self, ctx):
        assert entry_height(5) == 91
        assert entry_height(0) == 455
        content = LogosTextTableContent(entries=[{"text": "One"}, {"text": "Two"}])
        geometry = resolve_logos_text_table(content, ctx)
        assert geometry.fit["entry_height"] == 227
        assert geometry.find("entry.0.rule") is not None
        assert geometry.find("entry.1.rule") is None


class TestRegistry:
    """Tests for template dispatch."""

    def test_registry_matches_catalog(self):
        assert set(RESOLVERS) == {template.id for template in TEMPLATE_CATALOG}

    @pytest.mark.parametrize("template", sorted(RESOLVERS))
    def test_every_template_resolves_defaults(self, template, ctx):
        """Test that empty content resolves inside the canvas with unique ids."""
        page = Page(id="p", content={"template": template})
        geometry = resolve_page(page, ctx)
        ids = [element.id for element in geometry.elements]
        assert geometry.template == template
        assert (geometry.width, geometry.height) == (960, 540)
        assert len(ids) == len(set(ids))
        assert geometry.out_of_bounds() == []

    def test_resolution_is_deterministic(self, ctx):
        page = Page(id="p", content={"template": "disclaimer", "text": LOREM * 20})
        assert resolve_page(page, ctx) == resolve_page(page, ctx)

    def test_unknown_template(self, ctx, monkeypatch):
        content = CoverContent()
        monkeypatch.delitem(RESOLVERS, "cover")
        with pytest.raises(UnknownTemplateError):
            resolve_content(content, ctx)
