"""Deck export pipeline.

Loads every image the deck references through an asset provider, resolves the
pages in deck order and draws them into one PDF. A page that fails to resolve
is exported as a blank page so the rest of the deck still renders.
"""

import asyncio
from pathlib import Path
from typing import Any, List, Mapping, Optional, Set

import structlog

from deckcanvas.config import LANGUAGE_FONTS, RenderDefaults
from deckcanvas.renderers.export import ExportRenderer
from deckcanvas.resolvers.common import ResolveContext
from deckcanvas.resolvers.registry import resolve_page
from deckcanvas.schemas import Deck, Language, Page, PageContent, ResolvedGeometry
from deckcanvas.services.assets import AssetProvider, load_images
from deckcanvas.services.geometry import Canvas

logger = structlog.get_logger(__name__)

# Content fields holding a single asset key
IMAGE_FIELDS = frozenset({"hero_image", "logo_image", "map_image", "image", "photo", "icon", "logo"})
# Content fields holding a list of asset keys
IMAGE_LIST_FIELDS = frozenset({"photos"})


def _collect(value: Any, keys: Set[str]) -> None:
    if isinstance(value, dict):
        for name, item in value.items():
            if name in IMAGE_FIELDS and isinstance(item, str):
                keys.add(item)
            elif name in IMAGE_LIST_FIELDS and isinstance(item, list):
                keys.update(entry for entry in item if isinstance(entry, str))
            else:
                _collect(item, keys)
    elif isinstance(value, list):
        for item in value:
            _collect(item, keys)


def content_asset_keys(content: PageContent) -> Set[str]:
    """Every non-empty asset key referenced by a page's content."""
    keys: Set[str] = set()
    _collect(content.model_dump(), keys)
    keys.discard("")
    return keys


def blank_page(defaults: RenderDefaults, canvas: Canvas, language: Language, template: str) -> ResolvedGeometry:
    body_family, heading_family = LANGUAGE_FONTS[language.value]
    return ResolvedGeometry(
        template=template,
        width=canvas.width,
        height=canvas.height,
        background=defaults.page_background,
        language=language,
        font_family=body_family,
        heading_font_family=heading_family,
    )


class DeckExporter:
    """Assembles one PDF page per deck page, in deck order."""

    def __init__(self, defaults: RenderDefaults, canvas: Optional[Canvas] = None, font_dir: Optional[Path] = None):
        self.defaults = defaults
        self.canvas = canvas or Canvas()
        self.font_dir = font_dir

    def resolve_pages(
        self, deck: Deck, assets: Mapping[str, Optional[bytes]], language: Optional[Language] = None
    ) -> List[ResolvedGeometry]:
        """Resolve every page; a page that raises degrades to a blank page."""
        language = language or deck.language
        ctx = ResolveContext.build(self.defaults, language=language, assets=assets, canvas=self.canvas)
        pages = []
        for page in deck.ordered_pages():
            pages.append(self._resolve_one(page, ctx))
        return pages

    def _resolve_one(self, page: Page, ctx: ResolveContext) -> ResolvedGeometry:
        try:
            return resolve_page(page, ctx)
        except Exception:
            logger.exception("page_resolve_failed", page_id=page.id, template=page.content.template)
            return blank_page(self.defaults, self.canvas, ctx.language, page.content.template)

    async def export(self, deck: Deck, provider: AssetProvider, language: Optional[Language] = None) -> bytes:
        """Export a deck as PDF bytes.

        Args:
            deck: Deck to export
            provider: Source of image bytes
            language: Overrides the deck language

        Returns:
            PDF document with one page per deck page

        Raises:
            ValueError: If the deck has no pages
        """
        if not deck.pages:
            raise ValueError("deck has no pages")

        keys: Set[str] = set()
        for page in deck.pages:
            keys.update(content_asset_keys(page.content))
        assets = await load_images(provider, keys)

        pages = await asyncio.to_thread(self.resolve_pages, deck, assets, language)
        renderer = ExportRenderer(font_dir=self.font_dir, title=deck.name)
        pdf = await asyncio.to_thread(renderer.render_pages, pages, assets)
        logger.info("deck_exported", deck_id=deck.id, pages=len(pages), assets=len(assets), size=len(pdf))
        return pdf
