"""
Configuration loading for gitembed.

Settings live in a YAML file (`gitembed.yaml`) in the platformdirs user config
directory. Every key is optional; values found in the file are merged over
DEFAULT_CONFIG.
"""

import os
from typing import Any, Dict, Optional

import platformdirs
import yaml

from gitembed.cache import CacheBackend, FileCache, InMemoryCache
from gitembed.constants import (
    API_REQUEST_TIMEOUT,
    APP_NAME,
    AVATAR_REQUEST_TIMEOUT,
    CONFIG_FILE_NAME,
    SITE_PROBE_TIMEOUT,
)
from gitembed.exceptions import ConfigurationError
from gitembed.log_utils import logger

CONFIG_DIR = platformdirs.user_config_dir(APP_NAME)
CONFIG_FILE = os.path.join(CONFIG_DIR, CONFIG_FILE_NAME)

CACHE_BACKEND_FILE = "file"
CACHE_BACKEND_MEMORY = "memory"

DEFAULT_CONFIG: Dict[str, Any] = {
    "API_TIMEOUT": API_REQUEST_TIMEOUT,
    "PROBE_TIMEOUT": SITE_PROBE_TIMEOUT,
    "AVATAR_TIMEOUT": AVATAR_REQUEST_TIMEOUT,
    "CACHE_BACKEND": CACHE_BACKEND_FILE,
    "CACHE_DIR": None,
    "LOG_LEVEL": None,
    "LOG_DIR": None,
}

_TIMEOUT_KEYS = ("API_TIMEOUT", "PROBE_TIMEOUT", "AVATAR_TIMEOUT")


def _validate(config: Dict[str, Any], source: str) -> Dict[str, Any]:
    for key in _TIMEOUT_KEYS:
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigurationError(
                f"Invalid {key} in {source}", details=f"expected a positive number, got {value!r}"
            )

    backend = str(config.get("CACHE_BACKEND") or "").lower()
    if backend not in (CACHE_BACKEND_FILE, CACHE_BACKEND_MEMORY):
        raise ConfigurationError(
            f"Invalid CACHE_BACKEND in {source}",
            details=f"expected '{CACHE_BACKEND_FILE}' or '{CACHE_BACKEND_MEMORY}', got {config.get('CACHE_BACKEND')!r}",
        )
    config["CACHE_BACKEND"] = backend
    return config


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the gitembed configuration.

    Parameters:
        config_path (Optional[str]): Explicit path to a YAML file. Defaults to CONFIG_FILE.

    Returns:
        Dict[str, Any]: DEFAULT_CONFIG updated with the file's values. A missing file yields the defaults.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid YAML, is not a mapping, or holds invalid values.
    """
    path = config_path or CONFIG_FILE
    config = dict(DEFAULT_CONFIG)

    if not os.path.exists(path):
        if config_path:
            raise ConfigurationError("Configuration file not found", details=path)
        logger.debug(f"No configuration file at {path}; using defaults")
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError("Could not read configuration file", details=f"{path}: {exc}") from exc

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping", details=path
        )

    config.update({str(key).upper(): value for key, value in loaded.items()})
    return _validate(config, path)


def build_cache(config: Dict[str, Any]) -> CacheBackend:
    """Create the cache backend selected by CACHE_BACKEND."""
    if config.get("CACHE_BACKEND") == CACHE_BACKEND_MEMORY:
        return InMemoryCache()
    return FileCache(config.get("CACHE_DIR"))
