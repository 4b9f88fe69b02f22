"""
Application configuration settings.
"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # API Settings
    api_v1_prefix: str = "/api/v1"
    debug: bool = False

    # File Storage
    data_dir: Path = Path("./data")

    # Session Settings
    session_ttl_hours: int = 24

    # ============================================================
    # CATALOG SETTINGS
    # ============================================================

    # Optional JSON catalog; the built-in catalog is used when unset
    catalog_path: Optional[Path] = None

    # New designs start with this frame and a solid background color
    default_frame_id: str = "sm"
    default_background_color: str = "#f4eee8"

    # ============================================================
    # GESTURE SETTINGS
    # ============================================================

    # Uniform resize: pixels of horizontal drag per 1.0 of scale
    scale_sensitivity_px: float = 100.0
    min_scale: float = 0.2           # Floor so elements never vanish

    # Width-only resize of text boxes (percent of host width)
    min_text_width_pct: float = 10.0
    default_text_width_pct: float = 30.0

    # ============================================================
    # FINALIZE SETTINGS
    # ============================================================

    # Upper bound for the client-rendered preview image
    max_preview_image_mb: int = 10

    @property
    def max_preview_image_bytes(self) -> int:
        return self.max_preview_image_mb * 1024 * 1024

    model_config = SettingsConfigDict(
        env_prefix="GIFTFRAME_",
        env_file=".env",
        extra="ignore",
    )


# Global settings instance
settings = Settings()
