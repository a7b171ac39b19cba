"""Shared modules for helmboot-cli.

This module provides functionality used by all commands:
- Paths (~/.helmboot/ layout)
- Logging configuration
"""

from .logging import configure_logging, get_logger
from .paths import HELMBOOT_DIR

__all__ = [
    # Paths
    "HELMBOOT_DIR",
    # Logging
    "configure_logging",
    "get_logger",
]
