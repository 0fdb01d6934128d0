"""Configuration management for ProjectHub.

Loads configuration from:
1. config.toml (defaults, in the ProjectHub root directory)
2. Environment variables (overrides)
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

DEFAULT_ROOT_DIR = Path.home() / ".projecthub"
OFFICIAL_MARKETPLACE_URL = "https://github.com/cbabil/projecthub-packs/releases/latest"


@dataclass
class PathsConfig:
    """Managed directories.

    Empty values are derived from ``root_dir``.
    """

    root_dir: str = ""
    packs_dir: str = ""
    projects_dir: str = ""
    marketplace_dir: str = ""

    @property
    def root(self) -> Path:
        return Path(self.root_dir).expanduser() if self.root_dir else DEFAULT_ROOT_DIR

    @property
    def packs(self) -> Path:
        return Path(self.packs_dir).expanduser() if self.packs_dir else self.root / "packs"

    @property
    def projects(self) -> Path:
        if self.projects_dir:
            return Path(self.projects_dir).expanduser()
        return self.root / "projects"

    @property
    def marketplace(self) -> Path:
        if self.marketplace_dir:
            return Path(self.marketplace_dir).expanduser()
        return self.root / "marketplace"


@dataclass
class NetworkConfig:
    """Remote fetch configuration."""

    timeout: float = 60.0
    max_redirects: int = 5
    user_agent: str = "projecthub/1.0"


@dataclass
class MarketplaceConfig:
    """Marketplace sources configuration."""

    default_url: str = OFFICIAL_MARKETPLACE_URL


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR


@dataclass
class Config:
    """Main configuration container."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    marketplace: MarketplaceConfig = field(default_factory=MarketplaceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            paths=PathsConfig(**data.get("paths", {})),
            network=NetworkConfig(**data.get("network", {})),
            marketplace=MarketplaceConfig(**data.get("marketplace", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )


def find_config_file(root_dir: Path | None = None) -> Path | None:
    """Find config.toml via $PROJECTHUB_CONFIG or the ProjectHub root.

    Returns:
        Path to config.toml or None if not found.
    """
    explicit = os.getenv("PROJECTHUB_CONFIG")
    if explicit:
        return Path(explicit).expanduser()

    config_path = (root_dir or DEFAULT_ROOT_DIR) / "config.toml"
    if config_path.exists():
        return config_path

    return None


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to config.toml

    Returns:
        Config object with merged settings.
    """
    config_data: dict[str, Any] = {}

    home = os.getenv("PROJECTHUB_HOME")
    if config_path is None:
        config_path = find_config_file(Path(home).expanduser() if home else None)

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path, "rb") as f:
                config_data = tomllib.load(f)

    # Apply environment variable overrides
    env_overrides = {
        "paths": {
            "root_dir": home,
            "packs_dir": os.getenv("PROJECTHUB_PACKS_DIR"),
            "projects_dir": os.getenv("PROJECTHUB_PROJECTS_DIR"),
        },
        "network": {
            "timeout": _float_or_none(os.getenv("PROJECTHUB_TIMEOUT")),
        },
        "logging": {
            "level": _level_or_none(os.getenv("PROJECTHUB_TRACE")),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return Config.from_dict(config_data)


def ensure_roots(config: Config) -> None:
    """Create the root, packs and projects directories if missing."""
    for directory in (config.paths.root, config.paths.packs, config.paths.projects):
        directory.mkdir(parents=True, exist_ok=True)


def _float_or_none(value: str | None) -> float | None:
    """Convert string to float, or return None."""
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


_TRACE_LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
}


def _level_or_none(value: str | None) -> str | None:
    """Map a PROJECTHUB_TRACE value to a logging level name."""
    if not value:
        return None
    return _TRACE_LEVELS.get(value.strip().lower())


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Force reload of configuration.

    Returns:
        Fresh Config object.
    """
    global _config
    _config = load_config()
    return _config
