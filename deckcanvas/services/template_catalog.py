"""Template catalog.

Provides the definitions of every page template a deck page can use. The ids
are the tags carried in page content and dispatched by the resolver registry.
"""

from typing import List

from deckcanvas.schemas import TemplateDefinition

# Catalog of page templates, in editor order
TEMPLATE_CATALOG: List[TemplateDefinition] = [
    TemplateDefinition(
        id="cover",
        name="Cover",
        description="Headline centered beside a circular hero image, with wordmark and year.",
        category="structure",
    ),
    TemplateDefinition(
        id="index",
        name="Index",
        description="Table of contents in titled sections (or a flat list) beside a pill-shaped image.",
        category="structure",
        auto_fit=True,
    ),
    TemplateDefinition(
        id="section-divider",
        name="Section Divider",
        description="Section label and number, an accent bar and the section title.",
        category="structure",
    ),
    TemplateDefinition(
        id="value-proposition",
        name="Value Proposition",
        description="Three check-mark badges above a body paragraph sized by its length.",
        category="text",
        auto_fit=True,
    ),
    TemplateDefinition(
        id="multi-card-grid",
        name="Multi-Card Grid",
        description="Icon cards with bullets alternating between two columns.",
        category="text",
        auto_fit=True,
    ),
    TemplateDefinition(
        id="three-circles",
        name="Three Circles",
        description="Three overlapping circles, each with a heading and a body.",
        category="diagram",
        auto_fit=True,
    ),
    TemplateDefinition(
        id="diagram",
        name="Diagram",
        description="Logo circle connected to up to three labelled branches.",
        category="diagram",
    ),
    TemplateDefinition(
        id="flow-chart",
        name="Flow Chart",
        description="Freely placed nodes joined by labelled arrows, with legend and footnotes.",
        category="diagram",
    ),
    TemplateDefinition(
        id="timeline",
        name="Timeline",
        description="Dated entries along a vertical line beside a captioned photo.",
        category="media",
        auto_fit=True,
    ),
    TemplateDefinition(
        id="photo-gallery",
        name="Photo Gallery",
        description="Up to sixteen photos in balanced rows.",
        category="media",
    ),
    TemplateDefinition(
        id="text-images",
        name="Text + Images",
        description="Heading, body and bullets beside one or two photos and an optional logo.",
        category="media",
    ),
    TemplateDefinition(
        id="before-after",
        name="Before / After",
        description="Before and after photos in 2x2, 1x2, 2x1 or freeform grids with arrows.",
        category="media",
    ),
    TemplateDefinition(
        id="logos-text-table",
        name="Logos + Text",
        description="Rows of logo and description sharing the page height.",
        category="media",
    ),
    TemplateDefinition(
        id="map-text-list",
        name="Map + Property List",
        description="Map beside property groups in two columns and an optional summary block.",
        category="media",
        auto_fit=True,
    ),
    TemplateDefinition(
        id="map-text-card",
        name="Map + Cards",
        description="Map beside vertically centered cards joined by optional arrows.",
        category="media",
        auto_fit=True,
    ),
    TemplateDefinition(
        id="map-text-overlay",
        name="Map Overlay",
        description="Full-width map with labelled callouts placed by percentage.",
        category="media",
    ),
    TemplateDefinition(
        id="data-table",
        name="Data Table",
        description="Table with weighted columns, highlighted rows and footnotes.",
        category="data",
        auto_fit=True,
    ),
    TemplateDefinition(
        id="comparison-table",
        name="Comparison Table",
        description="Side-by-side comparison against a competitor with an optional source line.",
        category="data",
        auto_fit=True,
    ),
    TemplateDefinition(
        id="text-chart",
        name="Text + Chart",
        description="Bullets beside a bar chart or a captioned image.",
        category="data",
    ),
    TemplateDefinition(
        id="disclaimer",
        name="Disclaimer",
        description="Legal text shrunk to fit the page.",
        category="text",
        auto_fit=True,
    ),
    TemplateDefinition(
        id="contact",
        name="Contact",
        description="Centered logo with company details and a link.",
        category="structure",
    ),
]


class TemplateCatalog:
    """Provides access to the page template definitions."""

    def __init__(self):
        self._catalog = TEMPLATE_CATALOG

    def get_all_templates(self) -> List[TemplateDefinition]:
        """Get every template definition in editor order."""
        return self._catalog.copy()

    def get_template(self, template_id: str) -> TemplateDefinition:
        """Get a template definition by id.

        Args:
            template_id: Template tag, e.g. "flow-chart"

        Returns:
            The matching definition

        Raises:
            ValueError: If template_id is not in the catalog
        """
        for template in self._catalog:
            if template.id == template_id:
                return template
        raise ValueError(f"Unknown template id: {template_id}")
