"""
Statistics tracking for image sorting runs.
"""

from collections import Counter
from pathlib import Path
from typing import Dict, List, Tuple

from .models import SortEvent, SortEventKind


class StatsManager:
    """Encapsulates statistics tracking for a sort run."""

    def __init__(self, target: Path, dry_run: bool = False):
        self.target = target
        self.dry_run = dry_run
        self._stats = {
            'sorted': 0,
            'errors': 0,
            'total_size': 0,
        }
        self._folders: Counter = Counter()

    def record_event(self, event: SortEvent) -> None:
        """Update counters from a per-item event; lifecycle events are ignored."""
        if event.kind is SortEventKind.SORTED:
            self.record_sorted(event.destination)
        elif event.kind is SortEventKind.ERROR:
            self.increment_errors()

    def record_sorted(self, destination: Path) -> None:
        self._stats['sorted'] += 1
        self._folders[self._folder_label(destination)] += 1
        # Dry runs have nothing at the destination to measure
        if not self.dry_run and destination.exists():
            self._stats['total_size'] += destination.stat().st_size

    def increment_errors(self) -> None:
        self._stats['errors'] += 1

    def _folder_label(self, destination: Path) -> str:
        try:
            relative = destination.parent.relative_to(self.target)
        except ValueError:
            return str(destination.parent)
        return relative.as_posix() if relative.parts else "."

    def get_stats(self) -> Dict[str, int]:
        """Get a copy of current statistics."""
        return self._stats.copy()

    def get_folder_counts(self) -> List[Tuple[str, int]]:
        """Files per destination folder, largest first."""
        return self._folders.most_common()

    def get_total_size_mb(self) -> float:
        """Get total size in megabytes."""
        return self._stats['total_size'] / (1024 * 1024)

    def has_errors(self) -> bool:
        return self._stats['errors'] > 0

    def get_sorted(self) -> int:
        return self._stats['sorted']

    def get_errors(self) -> int:
        return self._stats['errors']
