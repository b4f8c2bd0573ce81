"""
imagesort - Organize images into folders by date taken, name, or size.

Resolves a trustworthy "date taken" for each image (EXIF capture metadata,
then file-system timestamps, then the current time) and turns a structure
template such as "YYYY/MM/DD" into a collision-safe destination path.
"""

__version__ = "1.0.0"
__copyright__ = "Copyright (c) 2025 Joe Monaco (joe@selfmotion.net)"


# Public API
from .cli import main
from .config import Config
from .core import ImageSorter, SortRun, SortState
from .errors import (ConfigurationError, ImageSortError, NamingCollisionError, PlanningError,
                     SortInProgressError)
from .models import (DateSource, PlannedDestination, ResolvedDate, SortCriterion, SortEvent,
                     SortEventKind, SortJobConfig)
from .planner import PathPlanner
from .templates import render_structure, translate_structure
from .timestamps import DateResolver

__all__ = [
    "main", "Config", "ImageSorter", "SortRun", "SortState", "DateResolver", "PathPlanner",
    "SortJobConfig", "SortCriterion", "SortEvent", "SortEventKind", "ResolvedDate", "DateSource",
    "PlannedDestination", "render_structure", "translate_structure", "ImageSortError",
    "ConfigurationError", "SortInProgressError", "PlanningError", "NamingCollisionError",
]
