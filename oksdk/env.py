from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .constants import LOGGER


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_env(key: str, default: str | None = None) -> str | None:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def load_env(path: str | Path | None = None) -> bool:
    env_path = Path(path) if path is not None else Path.cwd() / ".env"
    if not env_path.exists():
        return False
    return load_dotenv(env_path, override=True)


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("OK_SDK_DEBUG"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
    return debug_enabled
