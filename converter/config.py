"""Configuration management for the conversion engine."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Service configuration
    service_name: str = "local-file-converter"
    log_level: str = "INFO"

    # Encoding settings
    jpeg_quality: float = Field(
        default=0.9, description="JPEG encode quality in (0, 1]")
    render_scale: float = Field(
        default=1.5, description="Magnification applied when rasterizing a PDF page"
    )

    # Target page for image -> PDF, in points (A4)
    page_width: float = 595.28
    page_height: float = 841.89

    # Intake limits
    max_input_size_mb: int = Field(
        default=100, description="Max source file size in MB")
    accepted_mime_types: list[str] = Field(
        default=[
            "image/jpeg",
            "image/png",
            "image/webp",
            "application/pdf",
        ],
        description="MIME types accepted by the intake filter",
    )

    model_config = {
        "env_prefix": "CONVERTER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()
