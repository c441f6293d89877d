"""Template tag to resolver dispatch."""

from typing import Callable, Dict

import structlog

from deckcanvas.exceptions import UnknownTemplateError
from deckcanvas.resolvers import (
    card_grid,
    diagram,
    flow_chart,
    index_toc,
    map_text,
    media,
    photo_gallery,
    tables,
    text_chart,
    text_pages,
    three_circles,
    timeline,
)
from deckcanvas.resolvers.common import ResolveContext
from deckcanvas.schemas import Page, PageContent, ResolvedGeometry

logger = structlog.get_logger(__name__)

Resolver = Callable[..., ResolvedGeometry]

RESOLVERS: Dict[str, Resolver] = {
    "flow-chart": flow_chart.resolve,
    "photo-gallery": photo_gallery.resolve,
    "map-text-list": map_text.resolve_list,
    "map-text-card": map_text.resolve_cards,
    "map-text-overlay": map_text.resolve_overlay,
    "three-circles": three_circles.resolve,
    "timeline": timeline.resolve,
    "data-table": tables.resolve_data_table,
    "multi-card-grid": card_grid.resolve,
    "cover": text_pages.resolve_cover,
    "section-divider": text_pages.resolve_section_divider,
    "disclaimer": text_pages.resolve_disclaimer,
    "contact": text_pages.resolve_contact,
    "value-proposition": text_pages.resolve_value_proposition,
    "diagram": diagram.resolve,
    "index": index_toc.resolve,
    "comparison-table": tables.resolve_comparison_table,
    "text-chart": text_chart.resolve,
    "text-images": media.resolve_text_images,
    "before-after": media.resolve_before_after,
    "logos-text-table": media.resolve_logos_text_table,
}


def resolve_content(content: PageContent, ctx: ResolveContext) -> ResolvedGeometry:
    """Resolve one template content payload.

    Args:
        content: Template content, tagged by its ``template`` field
        ctx: Canvas, defaults, language and resolved asset keys

    Returns:
        Resolved geometry for the page

    Raises:
        UnknownTemplateError: If no resolver is registered for the tag
    """
    resolver = RESOLVERS.get(content.template)
    if resolver is None:
        raise UnknownTemplateError(content.template)
    geometry = resolver(content, ctx)
    logger.debug(
        "page_resolved",
        template=content.template,
        elements=len(geometry.elements),
        fit=geometry.fit,
    )
    return geometry


def resolve_page(page: Page, ctx: ResolveContext) -> ResolvedGeometry:
    return resolve_content(page.content, ctx)
