"""Configuration module for financeos."""

from financeos.config.logging import configure_logging, get_logger
from financeos.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "configure_logging", "get_logger"]
