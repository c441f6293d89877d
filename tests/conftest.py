"""
Shared pytest fixtures for deckcanvas tests.

This module consolidates the render defaults, resolve contexts, asset stores and
sample images used across unit and integration tests.
"""

from datetime import date
from io import BytesIO

import pytest
from PIL import Image

from deckcanvas.config import RenderDefaults
from deckcanvas.resolvers.common import ResolveContext
from deckcanvas.schemas import Language
from deckcanvas.services.assets import InMemoryAssetStore

# =============================================================================
# Rate Limiter Reset Fixture
# =============================================================================


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """
    Reset rate limiter between tests to prevent rate limit errors.

    This fixture runs automatically before each test to clear the rate limiter's
    internal state, ensuring tests don't interfere with each other.
    """
    from deckcanvas.middleware.rate_limit import limiter

    limiter.reset()
    yield
    limiter.reset()


# =============================================================================
# Rendering Fixtures
# =============================================================================


@pytest.fixture
def defaults():
    """Render defaults pinned to 2024 so chrome text is stable."""
    return RenderDefaults(year="2024", brand_name="DeckCanvas")


@pytest.fixture
def ctx(defaults):
    """Resolve context without any available images."""
    return ResolveContext.build(defaults, language=Language.EN)


def make_png(width: int = 40, height: int = 20, color=(200, 40, 40, 255)) -> bytes:
    """Encode a solid-color PNG."""
    buffer = BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """A small 40x20 PNG image."""
    return make_png()


@pytest.fixture
def ctx_with_images(defaults, png_bytes):
    """Resolve context where the keys 'photo-a', 'photo-b' and 'logo' resolve to images."""
    assets = {"photo-a": png_bytes, "photo-b": png_bytes, "logo": png_bytes}
    return ResolveContext.build(defaults, language=Language.EN, assets=assets)


@pytest.fixture
def memory_store(png_bytes):
    """In-memory asset store holding 'photo-a' and 'logo'."""
    return InMemoryAssetStore({"photo-a": png_bytes, "logo": png_bytes})


@pytest.fixture
def today():
    return date(2024, 5, 1)
