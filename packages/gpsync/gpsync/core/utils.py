"""gpsync: Core Utilities
---------------------------------------------------------
YAML loading and dictionary merging shared by the configuration layer.

Public API
----------
``load_yaml_file`` : Load a YAML mapping with error handling
``deep_merge_dicts`` : Recursive dictionary merge for override chains
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .errors import GPSConfigError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file that holds a mapping.

    Parameters
    ----------
    path : Path
        Path to the YAML file

    Returns
    -------
    Dict[str, Any]
        Loaded YAML data; an empty file yields an empty dict

    Raises
    ------
    GPSConfigError
        If the file doesn't exist, can't be parsed or isn't a mapping

    """
    if not path.exists():
        raise GPSConfigError(f"File not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise GPSConfigError(f"Failed to parse YAML file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise GPSConfigError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return data


def deep_merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override values taking precedence.

    Parameters
    ----------
    base : Dict[str, Any]
        Base dictionary
    override : Dict[str, Any]
        Override dictionary

    Returns
    -------
    Dict[str, Any]
        Merged dictionary

    """
    result = dict(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
