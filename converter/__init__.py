"""Local conversion engine for JPEG, PNG, WEBP and PDF files."""

from converter.main import ConverterEngine, configure_logging, create_engine

__all__ = ["ConverterEngine", "configure_logging", "create_engine"]
