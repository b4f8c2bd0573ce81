"""
File extension constants and settings for image sorting.
"""

import logging
from datetime import date
from typing import Optional

from rich.console import Console

PROGRAM = "imagesort"

# File extension constants
STANDARD_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".tif", ".webp")
RAW_EXTENSIONS = (
    ".nef",  # Nikon
    ".cr2",  # Canon
    ".arw",  # Sony
    ".dng",  # Adobe
    ".raw",
)
IMAGE_EXTENSIONS = STANDARD_EXTENSIONS + RAW_EXTENSIONS

# Camera reset defaults, compared by calendar date only
SUSPICIOUS_DATES = frozenset({
    date(1970, 1, 1),
    date(1980, 1, 1),
    date(2000, 1, 1),
    date(2010, 1, 1),
    date(2020, 1, 1),
})
MIN_PLAUSIBLE_YEAR = 1995

# Size tier upper bounds in bytes (exclusive)
SMALL_FILE_LIMIT = 1_000_000
MEDIUM_FILE_LIMIT = 10_000_000

NAME_BUCKET_FALLBACK = "Other"
RENAME_FORMAT = "%Y%m%d_%H%M%S"
DEFAULT_DATE_PATTERN = "%Y/%m"
MAX_COLLISION_INDEX = 10_000

_console: Optional[Console] = None


def get_console() -> Console:
    """Shared rich console for progress, logging and summary output."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def get_logger(name: str = PROGRAM) -> logging.Logger:
    return logging.getLogger(name)
