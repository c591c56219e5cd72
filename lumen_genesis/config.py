"""Configuration management."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings pulled from ``LUMEN_*`` environment variables."""

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="plain", description="Logging format (plain or json)")

    # Canvas Configuration
    canvas_width: int = Field(default=900, ge=1, description="Canvas width in pixels")
    canvas_height: int = Field(default=600, ge=1, description="Canvas height in pixels")
    image_fit_ratio: float = Field(
        default=0.8, gt=0, le=1, description="Share of the canvas an uploaded image may fill"
    )

    # Soil Generation Configuration
    preview_max_points: int = Field(default=4000, ge=1, description="Cap on preview dots")
    min_soil_points: int = Field(
        default=50, ge=0, description="Below this many soil points the synthetic fallback kicks in"
    )
    fallback_soil_points: int = Field(
        default=120, ge=0, description="Synthetic soil points injected for dark images"
    )

    # Simulation Configuration
    growth_ticks: int = Field(default=200, ge=1, description="Ticks to full growth at speed 1")
    hand_stale_ticks: int = Field(
        default=30, ge=1, description="Ticks after which an unrefreshed hand observation is dropped"
    )
    video_width: int = Field(default=320, ge=1, description="Gesture camera frame width")
    video_height: int = Field(default=240, ge=1, description="Gesture camera frame height")
    seed: Optional[str] = Field(default=None, description="PRNG seed for reproducible sessions")

    model_config = SettingsConfigDict(
        env_prefix="LUMEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
