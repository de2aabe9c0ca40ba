"""Configuration loading for the grade service.

Values come from built-in defaults, optionally overlaid by a YAML file, then by
environment variables.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from src.patch.guard import DEFAULT_DISALLOWED_FIELDS, DEFAULT_METAPROPERTIES

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "grades.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "storage": {
        "table_name": "grades",
        "user_index": "userId-index",
    },
    "api": {
        "cors_origin": "*",
        "log_level": "INFO",
    },
    "patch": {
        "disallowed_fields": sorted(DEFAULT_DISALLOWED_FIELDS),
        "metaproperties": sorted(DEFAULT_METAPROPERTIES),
    },
}

# env var -> (section, key)
ENV_OVERRIDES = {
    "GRADES_TABLE": ("storage", "table_name"),
    "GRADES_USER_INDEX": ("storage", "user_index"),
    "CORS_ORIGIN": ("api", "cors_origin"),
    "LOG_LEVEL": ("api", "log_level"),
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from file or use defaults.

    Args:
        config_path: YAML file to read; falls back to ``GRADE_CONFIG_PATH``
            and then the bundled ``config/grades.yaml``

    Returns:
        Merged configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path or os.getenv("GRADE_CONFIG_PATH") or DEFAULT_CONFIG_PATH)
    if path.exists():
        with open(path, "r") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        _merge(config, loaded)
    elif config_path:
        raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        logger.debug(f"No config file at {path}, using defaults")

    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            config[section][key] = value

    return config
