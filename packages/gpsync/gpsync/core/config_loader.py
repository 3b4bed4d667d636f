"""Configuration loading utilities.

This module loads the :class:`SystemConfig` from the chain of YAML files that
may override the package defaults, and caches the result for the lifetime of
the interpreter.
"""

from __future__ import annotations

import importlib.resources as ilr
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import GPSConfigError, get_logger
from .system_config import SystemConfig
from .utils import deep_merge_dicts, load_yaml_file

logger = get_logger()

CONFIG_ENV_VAR = "GPSYNC_CONFIG"

_SYSTEM_CONFIG_CACHE: SystemConfig | None = None


def load_system_config(
    *, force_reload: bool = False, config_path: str | Path | None = None
) -> SystemConfig:
    """Load system configuration with override chain.

    Search order (later overrides earlier):
    1. Package default (gpsync.core/system.yaml)
    2. /etc/gpsync/config.yaml (System-wide)
    3. ~/.gpsync/config.yaml (User-specific)
    4. GPSYNC_CONFIG environment variable
    5. Explicitly provided config_path

    Parameters
    ----------
    force_reload : bool
        If True, ignore cache and reload
    config_path : str or Path, optional
        Path to specific config file to override everything else

    Returns
    -------
    SystemConfig
        Loaded system configuration

    """
    global _SYSTEM_CONFIG_CACHE

    if _SYSTEM_CONFIG_CACHE is not None and not force_reload and config_path is None:
        return _SYSTEM_CONFIG_CACHE

    # 1. Package default
    try:
        system_yaml_path = ilr.files("gpsync.core").joinpath("system.yaml")
        config_dict = load_yaml_file(Path(str(system_yaml_path)))
    except GPSConfigError:
        logger.warning("Could not load default system.yaml from package")
        config_dict = {}

    # 2-4. System-wide, user and environment overrides
    candidates = [
        Path("/etc/gpsync/config.yaml"),
        Path.home() / ".gpsync" / "config.yaml",
    ]
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path))

    for path in candidates:
        if not path.exists():
            continue
        try:
            config_dict = deep_merge_dicts(config_dict, load_yaml_file(path))
        except GPSConfigError as e:
            logger.warning(f"Failed to load config {path}: {e}")

    # 5. Explicit path
    if config_path:
        path = Path(config_path)
        try:
            config_dict = deep_merge_dicts(config_dict, load_yaml_file(path))
        except GPSConfigError as e:
            raise GPSConfigError(f"Failed to load explicit config {path}: {e}") from e

    config = _validate(config_dict)
    if config_path is None:
        _SYSTEM_CONFIG_CACHE = config
    return config


def _validate(config_dict: dict[str, Any]) -> SystemConfig:
    try:
        return SystemConfig(**config_dict)
    except ValidationError as e:
        raise GPSConfigError(f"Invalid system configuration: {e}") from e
