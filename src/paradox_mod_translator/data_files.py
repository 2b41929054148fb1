"""Locating prompt templates and glossaries on disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

APP_NAME = "pmt"

# Bundled defaults shipped inside the package
PACKAGE_DATA_DIR = Path(__file__).resolve().parent / "data"


def user_data_dir() -> Path:
    """Per-user data directory, e.g. ``~/.local/share/pmt/data``."""
    return Path.home() / ".local" / "share" / APP_NAME / "data"


def search_roots() -> List[Path]:
    """
    Data directories in lookup order.

    1. ``./data`` in the current working directory
    2. the per-user data directory
    3. the defaults bundled with the package
    """
    return [Path.cwd() / "data", user_data_dir(), PACKAGE_DATA_DIR]


def find_data_file(relative: str) -> Optional[Path]:
    """Return the first existing ``<root>/<relative>``, or None."""
    for root in search_roots():
        candidate = root / relative
        if candidate.is_file():
            logger.debug(f"Resolved data file {relative} -> {candidate}")
            return candidate
    return None
