"""Configuration management with validation."""

from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown environment variables
    )

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins",
    )

    # Asset upload settings
    max_upload_size: int = Field(
        default=10 * 1024 * 1024,  # 10MB
        ge=1024,  # Minimum 1KB
        description="Maximum image upload size in bytes",
    )
    asset_dir: Optional[Path] = Field(
        default=None,
        description="Directory backing the image asset store (defaults to ./assets)",
    )
    asset_retention_hours: int = Field(
        default=0,
        ge=0,
        description="Delete stored assets older than this many hours (0 keeps them forever)",
    )

    # Rendering settings
    font_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding TrueType files named '<Family>-Regular.ttf' / '<Family>-Bold.ttf'",
    )
    preview_scale: float = Field(
        default=1.0,
        ge=0.25,
        le=4.0,
        description="Raster preview pixels per logical canvas unit",
    )
    brand_name: str = Field(default="DeckCanvas", description="Wordmark text drawn in page chrome")
    default_language: str = Field(default="en", description="Language tag used when a request names none")

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("default_language")
    @classmethod
    def validate_default_language(cls, v: str) -> str:
        """Validate the default language tag."""
        v_lower = v.lower()
        if v_lower not in LANGUAGE_FONTS:
            raise ValueError(f"default_language must be one of {sorted(LANGUAGE_FONTS)}")
        return v_lower


# === Canvas ===

# Logical drawing surface shared by preview and export
CANVAS_WIDTH: int = 960
CANVAS_HEIGHT: int = 540

# Body / heading font family per language tag
LANGUAGE_FONTS: dict[str, tuple[str, str]] = {
    "en": ("Noto Sans JP", "REM"),
    "zh-tw": ("Noto Sans TC", "Noto Sans TC"),
    "zh-cn": ("Noto Sans SC", "Noto Sans SC"),
}


class RenderDefaults(BaseModel):
    """Named fallback constants handed to every resolver.

    Resolvers never look at the clock or the settings object; whatever they need
    beyond the page content arrives through this model.
    """

    model_config = ConfigDict(frozen=True)

    year: str = Field(..., description="Year printed in page chrome when the page sets none")
    brand_name: str = "DeckCanvas"
    accent_color: str = "#FBB931"
    ink_color: str = "#1A1A1A"
    body_color: str = "#333333"
    rule_color: str = "#E5E5E5"
    page_background: str = "#F2F2F2"
    card_background: str = "#FFFFFF"
    placeholder_fill: str = "#E8E8E8"
    placeholder_stroke: str = "#CCCCCC"
    missing_text_color: str = "#CCCCCC"
    missing_text: str = "[no translation]"
    link_color: str = "#0080A0"

    @classmethod
    def from_settings(cls, config: Settings, today: Optional[date] = None) -> "RenderDefaults":
        """Build defaults from settings, computing the year once.

        Args:
            config: Application settings
            today: Date to take the year from (defaults to the current date)

        Returns:
            Frozen render defaults
        """
        today = today or date.today()
        return cls(year=str(today.year), brand_name=config.brand_name)


# Global settings instance
settings = Settings()

# Directory paths
BASE_DIR = Path(__file__).resolve().parent.parent
ASSET_DIR = settings.asset_dir or BASE_DIR / "assets"
FONT_DIR = settings.font_dir or BASE_DIR / "fonts"

# Ensure directories exist
ASSET_DIR.mkdir(parents=True, exist_ok=True)
