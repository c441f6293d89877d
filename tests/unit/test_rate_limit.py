"""Tests for rate limiting middleware"""

import json
from unittest.mock import MagicMock

import pytest
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from deckcanvas.middleware.rate_limit import (
    EXPORT_LIMIT,
    PREVIEW_LIMIT,
    RESOLVE_LIMIT,
    UPLOAD_LIMIT,
    limiter,
    rate_limit_exceeded_handler,
)


def make_request(method: str = "POST", path: str = "/api/export") -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [],
    }
    return Request(scope)


class TestRateLimitMiddleware:
    """Test rate limiting middleware functionality"""

    def _create_mock_rate_limit_exc(self):
        """Create a mock RateLimitExceeded exception"""
        from slowapi.errors import RateLimitExceeded

        mock_limit = MagicMock()
        mock_limit.error_message = None
        mock_limit.limit = EXPORT_LIMIT

        exc = RateLimitExceeded.__new__(RateLimitExceeded)
        exc.limit = mock_limit
        exc.status_code = 429
        exc.detail = EXPORT_LIMIT
        return exc

    @pytest.mark.asyncio
    async def test_handler_returns_429_json(self):
        """Rate limit exceeded handler should return a JSON 429"""
        response = await rate_limit_exceeded_handler(make_request(), self._create_mock_rate_limit_exc())

        assert isinstance(response, JSONResponse)
        assert response.status_code == 429
        content = json.loads(response.body.decode())
        assert content["error"] == "Rate limit exceeded"
        assert "Too many requests" in content["detail"]

    def test_limiter_configuration(self):
        """Limiter should use the remote address and an hourly default"""
        assert limiter._key_func == get_remote_address
        assert limiter._default_limits

    def test_rendering_endpoints_stricter_than_resolve(self):
        """Export renders whole decks and gets the tightest budget"""
        limits = {"resolve": RESOLVE_LIMIT, "preview": PREVIEW_LIMIT, "export": EXPORT_LIMIT}
        per_minute = {name: int(value.split("/")[0]) for name, value in limits.items()}
        assert per_minute["export"] < per_minute["preview"] < per_minute["resolve"]
        assert all(value.endswith("/minute") for value in (RESOLVE_LIMIT, PREVIEW_LIMIT, EXPORT_LIMIT, UPLOAD_LIMIT))
