# src/zigfetch/config.py
"""
User configuration.

Settings live in a YAML file under the platform's user config directory. Values
in the file override the defaults below, and command-line flags override both.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs
import yaml

from zigfetch.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_CHANNEL,
    DEFAULT_INSTALL_DIR_NAME,
    ZIG_INDEX_URL,
)
from zigfetch.exceptions import ConfigurationError
from zigfetch.log_utils import logger

# Get the config directory using platformdirs
CONFIG_DIR = platformdirs.user_config_dir(APP_NAME)
CONFIG_FILE = os.path.join(CONFIG_DIR, CONFIG_FILE_NAME)


def default_install_dir() -> Path:
    """Default install destination: ~/.zig"""
    return Path.home() / DEFAULT_INSTALL_DIR_NAME


def get_default_config() -> Dict[str, Any]:
    return {
        "MANIFEST_URL": ZIG_INDEX_URL,
        "CHANNEL": DEFAULT_CHANNEL,
        "INSTALL_DIR": str(default_install_dir()),
        "STAGING_DIR": tempfile.gettempdir(),
        "VERIFY_CHECKSUM": True,
        "REQUIRE_CONTENT_LENGTH": False,
        "USE_MANIFEST_CACHE": True,
        "LOG_LEVEL": "",
        "LOG_TO_FILE": False,
    }


_STRING_KEYS = ("MANIFEST_URL", "CHANNEL", "INSTALL_DIR", "STAGING_DIR", "LOG_LEVEL")
_BOOL_KEYS = (
    "VERIFY_CHECKSUM",
    "REQUIRE_CONTENT_LENGTH",
    "USE_MANIFEST_CACHE",
    "LOG_TO_FILE",
)


@dataclass(frozen=True)
class Settings:
    manifest_url: str
    channel: str
    install_dir: Path
    staging_dir: Path
    verify_checksum: bool = True
    require_content_length: bool = False
    use_manifest_cache: bool = True
    log_level: str = ""
    log_to_file: bool = False


def config_exists() -> bool:
    return os.path.exists(CONFIG_FILE)


def _validate(config: Dict[str, Any], path: str) -> Dict[str, Any]:
    merged = get_default_config()
    for key, value in config.items():
        if key not in merged:
            logger.debug(f"Ignoring unknown configuration key {key}")
            continue
        if value is None:
            continue
        if key in _STRING_KEYS and not isinstance(value, str):
            raise ConfigurationError(
                f"{key} must be a string", path, f"got {type(value).__name__}"
            )
        if key in _BOOL_KEYS and not isinstance(value, bool):
            raise ConfigurationError(
                f"{key} must be true or false", path, f"got {value!r}"
            )
        merged[key] = value

    for key in ("MANIFEST_URL", "CHANNEL", "INSTALL_DIR", "STAGING_DIR"):
        if not merged[key].strip():
            raise ConfigurationError(f"{key} must not be empty", path)
    return merged


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the YAML configuration and merge it over the defaults.

    A missing file is not an error: the defaults are returned unchanged.

    Parameters:
        path (str | None): Configuration file to read; CONFIG_FILE when None.

    Returns:
        dict: Complete configuration with every known key present.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid YAML, is not a
        mapping, or holds values of the wrong type.
    """
    config_path = path or CONFIG_FILE
    if not os.path.exists(config_path):
        return get_default_config()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(
            "Could not read configuration file", config_path, str(e)
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            "Configuration file is not valid YAML", config_path, str(e)
        ) from e

    if config is None:
        return get_default_config()
    if not isinstance(config, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping", config_path
        )
    logger.debug(f"Loaded configuration from {config_path}")
    return _validate(config, config_path)


def write_default_config(path: Optional[str] = None) -> Optional[str]:
    """
    Write the default configuration file if it does not exist yet.

    Returns:
        str | None: The path written, or None when a file was already present.

    Raises:
        ConfigurationError: If the file cannot be written.
    """
    config_path = path or CONFIG_FILE
    if os.path.exists(config_path):
        return None
    try:
        os.makedirs(os.path.dirname(config_path) or ".", exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(get_default_config(), f, default_flow_style=False)
    except OSError as e:
        raise ConfigurationError(
            "Could not write configuration file", config_path, str(e)
        ) from e
    return config_path


def build_settings(
    config: Dict[str, Any], overrides: Optional[Dict[str, Any]] = None
) -> Settings:
    """
    Turn a configuration mapping plus command-line overrides into Settings.

    Override values of None are ignored. Paths have `~` expanded.
    """
    values = dict(config)
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    return Settings(
        manifest_url=values["MANIFEST_URL"],
        channel=values["CHANNEL"],
        install_dir=Path(os.path.expanduser(str(values["INSTALL_DIR"]))),
        staging_dir=Path(os.path.expanduser(str(values["STAGING_DIR"]))),
        verify_checksum=bool(values["VERIFY_CHECKSUM"]),
        require_content_length=bool(values["REQUIRE_CONTENT_LENGTH"]),
        use_manifest_cache=bool(values["USE_MANIFEST_CACHE"]),
        log_level=values.get("LOG_LEVEL") or "",
        log_to_file=bool(values["LOG_TO_FILE"]),
    )
