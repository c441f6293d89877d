import asyncio
import os
from typing import List, Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from fastapi.responses import Response

from deckcanvas import config
from deckcanvas.config import RenderDefaults
from deckcanvas.core.logging import get_logger
from deckcanvas.exceptions import AssetStoreError, UnknownTemplateError
from deckcanvas.middleware.rate_limit import EXPORT_LIMIT, PREVIEW_LIMIT, RESOLVE_LIMIT, UPLOAD_LIMIT, limiter
from deckcanvas.renderers.preview import PreviewRenderer
from deckcanvas.resolvers.common import ResolveContext
from deckcanvas.resolvers.registry import resolve_page
from deckcanvas.schemas import (
    AssetUploadResponse,
    ExportRequest,
    Language,
    ResolvedGeometry,
    ResolveRequest,
    TemplateDefinition,
)
from deckcanvas.services.assets import FileSystemAssetStore, load_images
from deckcanvas.services.deck_export import DeckExporter, content_asset_keys
from deckcanvas.services.template_catalog import TemplateCatalog
from deckcanvas.utils.file_validation import detect_image_extension, get_safe_filename, validate_image_file

logger = get_logger(__name__)

router = APIRouter()
catalog = TemplateCatalog()
asset_store = FileSystemAssetStore(config.ASSET_DIR)

MEDIA_TYPES = {".png": "image/png", ".jpg": "image/jpeg", ".gif": "image/gif", ".webp": "image/webp"}


def render_defaults() -> RenderDefaults:
    return RenderDefaults.from_settings(config.settings)


def request_language(language: Optional[Language]) -> Language:
    return language or Language(config.settings.default_language)


async def resolve_request(payload: ResolveRequest):
    """Load the page's images and resolve it.

    Returns:
        (resolved geometry, loaded asset bytes by key)
    """
    assets = await load_images(asset_store, content_asset_keys(payload.page.content))
    ctx = ResolveContext.build(render_defaults(), language=request_language(payload.language), assets=assets)
    return resolve_page(payload.page, ctx), assets


@router.get("/templates", response_model=List[TemplateDefinition])
async def list_templates():
    """List every page template in editor order"""
    return catalog.get_all_templates()


@router.post("/resolve", response_model=ResolvedGeometry)
@limiter.limit(RESOLVE_LIMIT)
async def resolve(request: Request, payload: ResolveRequest):
    """Resolve one page into absolute geometry

    Args:
        request: FastAPI request object
        payload: Page content and optional language

    Returns:
        Resolved geometry of the page, elements in paint order

    Raises:
        HTTPException: If resolution fails unexpectedly
    """
    try:
        geometry, _ = await resolve_request(payload)
        logger.info(
            "page_resolve_success",
            page_id=payload.page.id,
            template=geometry.template,
            elements=len(geometry.elements),
        )
        return geometry
    except UnknownTemplateError as e:
        logger.error("page_resolve_unknown_template", page_id=payload.page.id, template=e.template)
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        logger.error("page_resolve_failed", page_id=payload.page.id, error=str(e), error_type=type(e).__name__)
        raise HTTPException(status_code=500, detail="Failed to resolve page layout.") from e


@router.post("/preview")
@limiter.limit(PREVIEW_LIMIT)
async def preview(request: Request, payload: ResolveRequest):
    """Render one page as a PNG preview

    Args:
        request: FastAPI request object
        payload: Page content and optional language

    Returns:
        PNG image of the page at the configured preview scale
    """
    try:
        geometry, assets = await resolve_request(payload)
        renderer = PreviewRenderer(scale=config.settings.preview_scale, font_dir=config.FONT_DIR)
        png = await asyncio.to_thread(renderer.render, geometry, assets)
    except UnknownTemplateError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        logger.error("preview_failed", page_id=payload.page.id, error=str(e), error_type=type(e).__name__)
        raise HTTPException(status_code=500, detail="Failed to render page preview.") from e

    logger.info("preview_success", page_id=payload.page.id, template=geometry.template, size=len(png))
    return Response(content=png, media_type="image/png")


@router.post("/export")
@limiter.limit(EXPORT_LIMIT)
async def export_deck(request: Request, payload: ExportRequest):
    """Export a deck as a PDF document

    Args:
        request: FastAPI request object
        payload: Deck and optional language override

    Returns:
        PDF attachment with one page per deck page, in deck order

    Raises:
        HTTPException: 422 for an empty deck, 500 if the export fails
    """
    deck = payload.deck
    if not deck.pages:
        raise HTTPException(status_code=422, detail="Deck has no pages")

    try:
        logger.info("export_started", deck_id=deck.id, pages=len(deck.pages))
        exporter = DeckExporter(render_defaults(), font_dir=config.FONT_DIR)
        pdf = await exporter.export(deck, asset_store, language=payload.language)
    except Exception as e:
        logger.error("export_failed", deck_id=deck.id, error=str(e), error_type=type(e).__name__)
        raise HTTPException(status_code=500, detail="Failed to export deck.") from e

    stem = get_safe_filename(deck.name).encode("ascii", "ignore").decode().strip("._")
    filename = f"{stem or 'deck'}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/assets", response_model=AssetUploadResponse)
@limiter.limit(UPLOAD_LIMIT)
async def upload_asset(request: Request, file: UploadFile = File(...)):  # noqa: B008
    """Store an uploaded image and return its asset key

    Raises:
        HTTPException: If validation or saving fails
    """
    logger.info("asset_upload_started", filename=get_safe_filename(file.filename or ""), content_type=file.content_type)
    content = await validate_image_file(file)
    extension = detect_image_extension(content)

    try:
        key = await asset_store.save_image(content, extension)
    except AssetStoreError as e:
        raise HTTPException(status_code=500, detail="Failed to save image. Please try again.") from e

    return AssetUploadResponse(key=key, size=len(content), content_type=MEDIA_TYPES.get(extension, file.content_type))


@router.get("/assets/{key}")
async def get_asset(key: str):
    """Return stored image bytes"""
    data = await asset_store.load_image(key)
    if data is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    media_type = MEDIA_TYPES.get(os.path.splitext(key)[1].lower(), "application/octet-stream")
    return Response(content=data, media_type=media_type)

