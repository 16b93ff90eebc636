import logging
import os
from dataclasses import dataclass
from typing import Tuple

import yaml

from pathwatcher import PathwatcherError

DEFAULT_CONFIG_PATH = "config.yml"
ENV_CONFIG_VAR = "PATHWATCHER_CONFIG"
DEFAULT_PATHS = ("/tmp", "/opt")

logger = logging.getLogger(__name__)


class ConfigError(PathwatcherError):
    """Raised when the configuration file cannot be written, read or parsed."""

    pass


@dataclass(frozen=True)
class Configuration:
    """Ordered list of paths to watch."""

    paths: Tuple[str, ...] = ()


def resolve_config_path(cli_config_path=None):
    """
    Pick the configuration file path.

    Precedence:
      1. cli_config_path if provided.
      2. Environment variable PATHWATCHER_CONFIG.
      3. Default to ./config.yml.

    Returns:
        str: The configuration file path.
    """
    if cli_config_path:
        return cli_config_path
    if os.environ.get(ENV_CONFIG_VAR):
        return os.environ[ENV_CONFIG_VAR]
    return DEFAULT_CONFIG_PATH


def create_default_config(config_path):
    """
    Write the default configuration if no file exists at config_path.

    Args:
        config_path (str): Path of the configuration file.

    Returns:
        bool: True if a file was created, False if one already existed.

    Raises:
        ConfigError: If the file cannot be written.
    """
    if os.path.exists(config_path):
        return False

    try:
        with open(config_path, "w") as f:
            yaml.safe_dump({"paths": list(DEFAULT_PATHS)}, f, default_flow_style=False)
    except OSError as e:
        raise ConfigError(f"Error creating default config {config_path}: {e}") from e

    logger.info("Default configuration created at %s", config_path)
    return True


def load_config(config_path):
    """
    Load the configuration from a YAML file.

    Args:
        config_path (str): Path of the configuration file.

    Returns:
        Configuration: The paths to watch, in file order.

    Raises:
        ConfigError: If the file is unreadable, malformed, or `paths` is not
            a list of strings.
    """
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Error reading config {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing config {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a mapping")

    paths = data.get("paths") or []
    if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
        raise ConfigError(f"Config {config_path}: 'paths' must be a list of strings")

    return Configuration(paths=tuple(paths))


def load_or_create_default(config_path=DEFAULT_CONFIG_PATH):
    """Create the default config if it is missing, then load it."""
    create_default_config(config_path)
    return load_config(config_path)
