from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from deckcanvas import config
from deckcanvas.api.routes import router
from deckcanvas.config import settings
from deckcanvas.core.logging import configure_logging, get_logger
from deckcanvas.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from deckcanvas.services.assets import AssetCleanupService
from deckcanvas.services.template_catalog import TEMPLATE_CATALOG

VERSION = "0.1.0"

# Initialize structured logging
configure_logging(level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    cleanup = AssetCleanupService(config.ASSET_DIR, settings.asset_retention_hours)
    cleanup.start()
    logger.info(
        "application_started",
        version=VERSION,
        log_level=settings.log_level,
        cors_origins=settings.cors_origins,
        templates=len(TEMPLATE_CATALOG),
        asset_dir=str(config.ASSET_DIR),
        font_dir=str(config.FONT_DIR),
    )
    yield
    cleanup.stop()
    logger.info("application_shutdown")


app = FastAPI(
    title="DeckCanvas",
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(router, prefix="/api")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.get("/")
async def root():
    return {"message": "DeckCanvas layout and export service", "version": VERSION}


@app.get("/health")
async def health_check():
    return {"status": "ok"}
