"""
Application Settings
===================

Engine settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional, List, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
from pathlib import Path


class Settings(BaseSettings):
    """Engine settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="xcanvas", description="Application name")
    app_version: str = Field(default="0.4.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional rotating log file")

    # Surface Configuration
    default_canvas_width: int = Field(default=300, gt=0, description="Surface width when none is given")
    default_canvas_height: int = Field(default=150, gt=0, description="Surface height when none is given")
    max_canvas_width: int = Field(default=8192, description="Maximum surface width")
    max_canvas_height: int = Field(default=8192, description="Maximum surface height")

    # Text Configuration
    default_font_family: str = Field(default="sans-serif", description="Generic font family")
    default_font_size: float = Field(default=16, gt=0, description="Base font size in pixels")
    default_font_color: str = Field(default="#000000", description="Default text color")
    line_height_ratio: float = Field(default=1.5, gt=0, description="Text line height / font size")
    font_search_paths: List[Path] = Field(
        default=[
            Path("/usr/share/fonts/truetype/dejavu"),
            Path("/usr/share/fonts/TTF"),
            Path("/Library/Fonts"),
            Path("C:/Windows/Fonts"),
        ],
        description="Directories searched for font files",
    )
    sans_serif_font_files: List[str] = Field(
        default=["DejaVuSans.ttf", "Arial.ttf", "arial.ttf", "LiberationSans-Regular.ttf"],
        description="Candidate files for the generic sans-serif family",
    )

    # Resource Configuration
    resource_base_url: Optional[str] = Field(
        default=None, description="Origin prepended to relative image sources"
    )
    resource_root: Path = Field(
        default=Path("."), description="Directory relative local image paths resolve against"
    )
    fetch_timeout: Optional[float] = Field(
        default=None, description="Image fetch timeout in seconds (None: wait indefinitely)"
    )
    default_generator_key: str = Field(
        default="canvas", description="Cache key for generator images without an id"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("font_search_paths", mode="before")
    @classmethod
    def parse_font_search_paths(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse font search paths from string or list."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [path.strip() for path in v.split(",") if path.strip()]
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="XCANVAS_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
