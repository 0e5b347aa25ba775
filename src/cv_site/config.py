"""
Configuration file support for CV Site.

Provides:
- Config dataclass for holding configuration values
- TOML config file loading (cv_site.toml)
- Precedence: CLI > config file > defaults
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

# Python 3.11+ has tomllib in stdlib, earlier versions need tomli
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .paths import get_repo_root, resolve_path

logger = logging.getLogger(__name__)

# Default config file name
DEFAULT_CONFIG_NAME = "cv_site.toml"


@dataclass
class PathsConfig:
    """Path configuration."""

    db: Optional[str] = None


@dataclass
class WebConfig:
    """Web server configuration."""

    host: str = "127.0.0.1"
    port: int = 5000
    debug: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    log_file: Optional[str] = None


@dataclass
class Config:
    """Complete configuration for CV Site."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    web: WebConfig = field(default_factory=WebConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    config_path: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], config_path: Optional[Path] = None) -> "Config":
        """Create Config from a dictionary (parsed TOML)."""
        paths_data = data.get("paths", {})
        web_data = data.get("web", {})
        logging_data = data.get("logging", {})

        return cls(
            paths=PathsConfig(
                db=paths_data.get("db"),
            ),
            web=WebConfig(
                host=web_data.get("host", "127.0.0.1"),
                port=int(web_data.get("port", 5000)),
                debug=bool(web_data.get("debug", False)),
            ),
            logging=LoggingConfig(
                level=logging_data.get("level", "WARNING"),
                log_file=logging_data.get("log_file"),
            ),
            config_path=config_path,
        )

    def db_path(self) -> Optional[Path]:
        """Configured database path, resolved against the config file's directory."""
        if not self.paths.db:
            return None
        if self.config_path is None:
            return Path(self.paths.db)
        return resolve_path(self.paths.db, base=self.config_path.parent)


class ConfigError(Exception):
    """Error loading or parsing configuration."""

    pass


def find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find the configuration file.

    Search order:
    1. Explicit path if provided
    2. cv_site.toml in current directory
    3. cv_site.toml in repository root

    Raises:
        ConfigError: If an explicit path was given and does not exist.
    """
    if config_path is not None:
        if config_path.exists():
            return config_path
        raise ConfigError(f"Config file not found: {config_path}")

    cwd_config = Path.cwd() / DEFAULT_CONFIG_NAME
    if cwd_config.exists():
        return cwd_config

    root_config = get_repo_root() / DEFAULT_CONFIG_NAME
    if root_config.exists():
        return root_config

    return None


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from a TOML file.

    If no config file is found, returns default configuration.

    Raises:
        ConfigError: If config file exists but cannot be parsed.
    """
    config_file = find_config_file(config_path)

    if config_file is None:
        logger.debug("No config file found, using defaults")
        return Config()

    logger.debug(f"Loading config from: {config_file}")

    try:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_file}: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_file}: {e}")

    try:
        config = Config.from_dict(data, config_path=config_file)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value in {config_file}: {e}")

    logger.info(f"Loaded config from: {config_file}")
    return config
