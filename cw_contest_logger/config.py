"""User settings for the logger: own grid, scoring and entry defaults.

Settings live in a JSON file in the user's config directory, or wherever the
CWCL_CONFIG environment variable points. Missing or malformed files give the
defaults.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, TypedDict

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "CW Contest Logger"
CONFIG_ENV_VAR = "CWCL_CONFIG"
CONFIG_FILENAME = "settings.json"


class Settings(TypedDict, total=False):
    MY_GRID: str
    POINTS_PER_QSO: int
    DEFAULT_MODE: str
    DEFAULT_RST: str
    DUPLICATE_CHECK: bool


DEFAULT_SETTINGS: Settings = {
    "MY_GRID": "",
    "POINTS_PER_QSO": 1,
    "DEFAULT_MODE": "CW",
    "DEFAULT_RST": "599",
    "DUPLICATE_CHECK": True,
}


def config_path() -> Path:
    """Resolve the settings file path, honoring CWCL_CONFIG."""
    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser()
    cfg_dir = Path(user_config_dir(appname=APP_NAME, appauthor=False))
    return cfg_dir / CONFIG_FILENAME


def is_valid_setting(key: str, val: Any) -> bool:
    """True if val has the type of the default for key; unknown keys take anything."""
    default = DEFAULT_SETTINGS.get(key)
    if default is None:
        return True
    if isinstance(default, bool):
        return isinstance(val, bool)
    if isinstance(default, int):
        return isinstance(val, int) and not isinstance(val, bool) and val >= 0
    return isinstance(val, type(default))


def get_settings() -> Settings:
    """Load settings from JSON, overriding defaults key by key.

    JSON shape example:
    { "my_grid": "FN20", "points_per_qso": 2 }
    Keys are case-insensitive; values of the wrong type are ignored and
    unknown keys are kept.
    """
    p = config_path()
    data: Dict[str, Any] = dict(DEFAULT_SETTINGS)
    try:
        if p.exists():
            with p.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            if isinstance(raw, dict):
                for key, val in raw.items():
                    if not isinstance(key, str):
                        continue
                    key = key.upper()
                    if is_valid_setting(key, val):
                        data[key] = val
                    else:
                        logger.warning("Ignoring setting %s=%r in %s", key, val, p)
            else:
                logger.warning("Settings file %s is not a JSON object; using defaults", p)
    except (OSError, json.JSONDecodeError, ValueError) as e:
        logger.warning("Could not read settings from %s: %s", p, e)
    return data  # type: ignore[return-value]


def save_settings(settings: Dict[str, Any]) -> Path:
    """Write settings as JSON and return the path used."""
    p = config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump({k.upper(): v for k, v in settings.items()}, f, indent=2, sort_keys=True)
    return p
