"""
Destination planning: subdirectory buckets, filenames and collision handling.
"""

import re
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .constants import (MAX_COLLISION_INDEX, MEDIUM_FILE_LIMIT, NAME_BUCKET_FALLBACK,
                        RENAME_FORMAT, SMALL_FILE_LIMIT)
from .errors import NamingCollisionError, PlanningError
from .models import PlannedDestination, ResolvedDate, SortCriterion, SortJobConfig
from .templates import render_structure

_SEPARATORS = re.compile(r"[\\/]+")


def split_extension(filename: str) -> Tuple[str, str]:
    """Split a filename at its last dot, so '.jpg' has an empty stem."""
    index = filename.rfind(".")
    if index < 0:
        return filename, ""
    return filename[:index], filename[index:]


def size_tier(size_bytes: int) -> str:
    """Bucket a file length into Small, Medium or Large."""
    if size_bytes < SMALL_FILE_LIMIT:
        return "Small"
    if size_bytes < MEDIUM_FILE_LIMIT:
        return "Medium"
    return "Large"


def name_bucket(filename: str) -> str:
    """Upper-cased first character of the stem, or 'Other' for an empty stem."""
    stem, _ = split_extension(filename)
    return stem[0].upper() if stem else NAME_BUCKET_FALLBACK


def split_structure(rendered: str) -> List[str]:
    """Split a rendered structure on either separator into relative path parts."""
    parts = [part for part in _SEPARATORS.split(rendered.strip()) if part and part != "."]
    if ".." in parts:
        raise PlanningError(f"Structure '{rendered}' escapes the target directory")
    return parts


def unique_path(path: Path, exists: Callable[[Path], bool] = Path.exists) -> Path:
    """Append _1, _2, ... to the stem until the path is free."""
    if not exists(path):
        return path

    stem, ext = split_extension(path.name)
    for counter in range(1, MAX_COLLISION_INDEX + 1):
        candidate = path.with_name(f"{stem}_{counter}{ext}")
        if not exists(candidate):
            return candidate

    raise NamingCollisionError(
        f"No free name for {path} after {MAX_COLLISION_INDEX} attempts"
    )


class PathPlanner:
    """Computes where a source file belongs under the target directory."""

    def __init__(self, config: SortJobConfig):
        self.config = config

    @property
    def needs_date(self) -> bool:
        """True when plans depend on the date taken."""
        return self.config.sort_by is SortCriterion.DATE or self.config.rename

    def plan(self, source_file: Path, resolved: Optional[ResolvedDate] = None) -> PlannedDestination:
        if resolved is None and self.needs_date:
            raise PlanningError(f"No date taken resolved for {source_file}")

        parts = self.subdirectory_parts(source_file, resolved)
        return PlannedDestination(
            source=source_file,
            directory=self.config.target.joinpath(*parts),
            filename=self.filename_for(source_file, resolved),
        )

    def subdirectory_parts(self, source_file: Path, resolved: Optional[ResolvedDate]) -> List[str]:
        criterion = self.config.sort_by
        if criterion is SortCriterion.DATE:
            return split_structure(render_structure(self.config.structure, resolved.taken))
        if criterion is SortCriterion.NAME:
            return [name_bucket(source_file.name)]
        if criterion is SortCriterion.SIZE:
            return [size_tier(source_file.stat().st_size)]
        raise PlanningError(f"Unsupported sort criterion: {criterion}")

    def filename_for(self, source_file: Path, resolved: Optional[ResolvedDate]) -> str:
        if not self.config.rename:
            return source_file.name
        _, ext = split_extension(source_file.name)
        return f"{resolved.taken.strftime(RENAME_FORMAT)}{ext}"
