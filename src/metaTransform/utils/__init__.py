"""
Utility modules for metaTransform.

This module contains various utility functions and classes.
"""

from .logger import get_logger, setup_logging
from .config import Config, ConfigManager, TRANSFORMATION_TAGS
from .helpers import ensure_directory, create_summary_statistics, format_time

__all__ = [
    "get_logger",
    "setup_logging",
    "Config",
    "ConfigManager",
    "TRANSFORMATION_TAGS",
    "ensure_directory",
    "create_summary_statistics",
    "format_time",
]
