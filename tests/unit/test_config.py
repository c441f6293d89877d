"""Unit tests for configuration module.

Tests Settings validation, environment variable handling and render defaults.
"""

from datetime import date
from pathlib import Path

import pytest
from pydantic import ValidationError

from deckcanvas.config import (
    ASSET_DIR,
    BASE_DIR,
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    LANGUAGE_FONTS,
    RenderDefaults,
    Settings,
)


class TestSettings:
    """Tests for Settings configuration class."""

    def test_default_settings(self):
        """Test default settings initialization."""
        settings = Settings()

        assert settings.host == "0.0.0.0"
        assert settings.port == 8000
        assert settings.debug is False
        assert settings.max_upload_size == 10 * 1024 * 1024
        assert settings.preview_scale == 1.0
        assert settings.default_language == "en"
        assert settings.asset_retention_hours == 0
        assert settings.log_level == "INFO"

    def test_settings_with_environment_variables(self, monkeypatch):
        """Test settings loaded from environment variables."""
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("PREVIEW_SCALE", "2")
        monkeypatch.setenv("BRAND_NAME", "Acme")
        monkeypatch.setenv("DEFAULT_LANGUAGE", "ZH-TW")

        settings = Settings()

        assert settings.port == 9000
        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.preview_scale == 2.0
        assert settings.brand_name == "Acme"
        assert settings.default_language == "zh-tw"

    def test_invalid_log_level(self):
        """Test that an unknown log level is rejected."""
        with pytest.raises(ValidationError, match="log_level must be one of"):
            Settings(log_level="VERBOSE")

    def test_invalid_language(self):
        """Test that a language without a font mapping is rejected."""
        with pytest.raises(ValidationError, match="default_language must be one of"):
            Settings(default_language="fr")

    @pytest.mark.parametrize("scale", [0.1, 5])
    def test_preview_scale_bounds(self, scale):
        """Test that the preview scale is bounded."""
        with pytest.raises(ValidationError):
            Settings(preview_scale=scale)

    def test_upload_size_minimum(self):
        """Test that tiny upload limits are rejected."""
        with pytest.raises(ValidationError):
            Settings(max_upload_size=10)


class TestConstants:
    """Tests for module-level constants and paths."""

    def test_canvas_dimensions(self):
        assert (CANVAS_WIDTH, CANVAS_HEIGHT) == (960, 540)

    def test_language_fonts(self):
        """Test the body/heading family pairs per language."""
        assert LANGUAGE_FONTS["en"] == ("Noto Sans JP", "REM")
        assert LANGUAGE_FONTS["zh-tw"] == ("Noto Sans TC", "Noto Sans TC")
        assert LANGUAGE_FONTS["zh-cn"] == ("Noto Sans SC", "Noto Sans SC")

    def test_paths(self):
        assert isinstance(BASE_DIR, Path)
        assert ASSET_DIR.exists()


class TestRenderDefaults:
    """Tests for the named fallback constants."""

    def test_from_settings_uses_given_date(self, today):
        """Test that the year is computed once from the given date."""
        defaults = RenderDefaults.from_settings(Settings(brand_name="Acme"), today=today)
        assert defaults.year == "2024"
        assert defaults.brand_name == "Acme"

    def test_from_settings_defaults_to_current_year(self):
        defaults = RenderDefaults.from_settings(Settings())
        assert defaults.year == str(date.today().year)

    def test_fallback_colors(self, defaults):
        assert defaults.accent_color == "#FBB931"
        assert defaults.ink_color == "#1A1A1A"
        assert defaults.page_background == "#F2F2F2"
        assert defaults.placeholder_fill == "#E8E8E8"

    def test_frozen(self, defaults):
        """Test that defaults cannot be mutated by a resolver."""
        with pytest.raises(ValidationError):
            defaults.year = "1999"
