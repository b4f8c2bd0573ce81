"""
Data model for sort jobs, resolved dates, planned destinations and run events.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .errors import ConfigurationError


class SortCriterion(Enum):
    """Selects how the destination subdirectory is chosen."""
    DATE = "date"
    NAME = "name"
    SIZE = "size"

    @classmethod
    def parse(cls, value: Union[str, "SortCriterion", None]) -> "SortCriterion":
        """Parse a sort key case-insensitively, raising ConfigurationError if unknown."""
        if isinstance(value, cls):
            return value
        if value is None or not str(value).strip():
            raise ConfigurationError("SortBy criteria must be specified.")
        key = str(value).strip().lower()
        for criterion in cls:
            if criterion.value == key:
                return criterion
        raise ConfigurationError(
            f"Invalid sortby value '{key}'. Must be 'date', 'name', or 'size'."
        )


class DateSource(Enum):
    """Which fallback tier produced a resolved date."""
    METADATA = "metadata"
    FILESYSTEM = "filesystem"
    NOW = "now"


@dataclass(frozen=True)
class ResolvedDate:
    """A per-file 'date taken' with second precision."""
    taken: datetime
    source: DateSource

    def __post_init__(self):
        if self.taken.microsecond:
            object.__setattr__(self, "taken", self.taken.replace(microsecond=0))


@dataclass(frozen=True)
class SortJobConfig:
    """Immutable settings for one sort run.

    Build instances with from_options() when the values come from user input;
    it makes paths absolute and parses the sort key.
    """
    source: Path
    target: Path
    sort_by: SortCriterion
    structure: str = ""
    rename: bool = False
    overwrite: bool = False
    keep_original: bool = True

    @classmethod
    def from_options(cls, source: Union[str, Path, None], target: Union[str, Path, None],
                     sort_by: Union[str, SortCriterion, None], structure: Optional[str] = "",
                     rename: bool = False, overwrite: bool = False,
                     keep_original: bool = True) -> "SortJobConfig":
        if source is None or not str(source).strip():
            raise ConfigurationError("Source directory must be specified.")
        if target is None or not str(target).strip():
            raise ConfigurationError("Target directory must be specified.")

        return cls(
            source=Path(source).expanduser().resolve(),
            target=Path(target).expanduser().resolve(),
            sort_by=SortCriterion.parse(sort_by),
            structure=structure or "",
            rename=bool(rename),
            overwrite=bool(overwrite),
            keep_original=bool(keep_original),
        )

    def validate(self) -> None:
        """Check the configuration against the filesystem."""
        if not str(self.source).strip():
            raise ConfigurationError("Source directory must be specified.")
        if not str(self.target).strip():
            raise ConfigurationError("Target directory must be specified.")
        if not isinstance(self.sort_by, SortCriterion):
            raise ConfigurationError("SortBy criteria must be specified.")
        if not self.source.is_dir():
            raise ConfigurationError(f"Source directory does not exist: {self.source}")


@dataclass(frozen=True)
class PlannedDestination:
    """Where one source file should end up."""
    source: Path
    directory: Path
    filename: str

    @property
    def path(self) -> Path:
        return self.directory / self.filename


class SortEventKind(Enum):
    STARTED = "started"
    SORTED = "sorted"
    ERROR = "error"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SortEventKind.COMPLETED, SortEventKind.CANCELLED, SortEventKind.FAILED)


@dataclass(frozen=True)
class SortEvent:
    """One notification from a sort run."""
    kind: SortEventKind
    message: str
    progress: int = 0
    source: Optional[Path] = None
    destination: Optional[Path] = None

    def __post_init__(self):
        # Progress is always reported as a percentage
        object.__setattr__(self, "progress", max(0, min(100, int(self.progress))))
