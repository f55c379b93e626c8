"""Utility functions for ewebridge runtime paths and helpers."""

import os
import time
from pathlib import Path
from typing import Any

PRIMARY_DATA_DIR_NAME = ".ewebridge"


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """
    Get the runtime data directory.

    Priority:
    1. `EWEBRIDGE_DATA_DIR` env override
    2. `~/.ewebridge`
    """
    env_path = str(os.environ.get("EWEBRIDGE_DATA_DIR") or "").strip()
    if env_path:
        return ensure_dir(Path(env_path).expanduser())
    return ensure_dir(Path.home() / PRIMARY_DATA_DIR_NAME)


def has_property(data: Any, key: str) -> bool:
    """Return True when `data` is a mapping that carries `key` (even with a falsy value)."""
    return isinstance(data, dict) and key in data


def now_s() -> int:
    """Current unix time in whole seconds."""
    return round(time.time())


def safe_filename(name: str) -> str:
    """Convert a string to a safe filename."""
    unsafe = '<>:"/\\|?*'
    for char in unsafe:
        name = name.replace(char, "_")
    return name.strip()
