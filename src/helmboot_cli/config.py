"""CLI configuration management.

Handles persistent CLI configuration stored in ~/.helmboot/config.yaml.
Supports environment variable overrides and CLI flag precedence.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .boot.launcher import DEFAULT_CHART_NAME
from .boot.requirements import DEFAULT_VERSIONS_REF, DEFAULT_VERSIONS_URL
from .shared.paths import HELMBOOT_DIR

# Default values
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_LOG_LEVEL = "info"

# Environment variable mappings
ENV_VARS = {
    "chart": "HELMBOOT_CHART",
    "versions_repo": "HELMBOOT_VERSIONS_REPO",
    "versions_ref": "HELMBOOT_VERSIONS_REF",
    "poll_interval": "HELMBOOT_POLL_INTERVAL",
    "log_level": "HELMBOOT_LOG_LEVEL",
}

BATCH_MODE_ENV_VAR = "JX_BATCH_MODE"

KEYS = ["chart", "versions_repo", "versions_ref", "poll_interval", "log_level"]


@dataclass
class CLIConfig:
    """CLI configuration."""

    chart: str = DEFAULT_CHART_NAME
    versions_repo: str = DEFAULT_VERSIONS_URL
    versions_ref: str = DEFAULT_VERSIONS_REF
    poll_interval: float = DEFAULT_POLL_INTERVAL
    log_level: str = DEFAULT_LOG_LEVEL

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")


def get_config_path() -> Path:
    """Get the CLI config file path.

    Returns:
        Path to ~/.helmboot/config.yaml
    """
    return HELMBOOT_DIR / "config.yaml"


def default_batch_mode() -> bool:
    """Batch mode defaults to on when JX_BATCH_MODE=true."""
    return os.environ.get(BATCH_MODE_ENV_VAR) == "true"


def _coerce(key: str, value: object) -> object:
    if key == "poll_interval":
        interval = float(value)
        if interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {value}")
        return interval
    return str(value)


def load_config(config_path: Path | None = None) -> CLIConfig:
    """Load CLI configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (~/.helmboot/config.yaml)
    3. Defaults

    Invalid values in the file or environment are ignored.

    Returns:
        CLIConfig with values and sources
    """
    config = CLIConfig()
    sources: dict[str, str] = {key: "default" for key in KEYS}

    # Load from config file
    path = config_path or get_config_path()
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            file_config = {}

        for key in KEYS:
            if key in file_config:
                try:
                    setattr(config, key, _coerce(key, file_config[key]))
                    sources[key] = "config file"
                except (TypeError, ValueError):
                    pass

    # Override with environment variables
    for key in KEYS:
        value = os.environ.get(ENV_VARS[key])
        if value:
            try:
                setattr(config, key, _coerce(key, value))
                sources[key] = "environment"
            except ValueError:
                pass

    config._sources = sources
    return config
