"""Rate limiting for the rendering endpoints"""

import structlog
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = structlog.get_logger(__name__)

# Per-endpoint limits
RESOLVE_LIMIT = "30/minute"
PREVIEW_LIMIT = "20/minute"
EXPORT_LIMIT = "10/minute"
UPLOAD_LIMIT = "20/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["100/hour"],
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return rate limit violations as JSON"""
    logger.warning("rate_limit_exceeded", path=request.url.path, limit=str(exc.detail))
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": "Too many requests. Please try again later.",
        },
    )
