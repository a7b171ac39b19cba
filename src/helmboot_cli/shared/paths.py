"""Path management for helmboot-cli.

Manages the ~/.helmboot/ directory used for CLI configuration.
"""

from pathlib import Path

# Base directory for all helmboot data
HELMBOOT_DIR = Path.home() / ".helmboot"
