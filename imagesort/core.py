"""
Core image sorting functionality.
"""

import threading
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Set

from .constants import IMAGE_EXTENSIONS, get_logger
from .errors import ImageSortError, SortInProgressError
from .file_operations import FileOperations
from .models import PlannedDestination, SortEvent, SortEventKind, SortJobConfig
from .planner import PathPlanner, split_extension, unique_path
from .timestamps import DateResolver


def is_supported_image(file_path: Path) -> bool:
    """Check the extension against the image allow-list, ignoring case."""
    _, ext = split_extension(file_path.name)
    return ext.lower() in IMAGE_EXTENSIONS


def percent(done: int, total: int) -> int:
    return int(done / total * 100) if total else 100


class SortState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class SortRun:
    """Iterator over the events of one sort run.

    The sorter stays RUNNING until the events are exhausted, the run is
    closed, or an abandoned run is garbage collected. Use it as a context
    manager to release the sorter as soon as the loop exits.
    """

    def __init__(self, sorter: "ImageSorter", events: Iterator[SortEvent]):
        self._sorter = sorter
        self._events = events
        self._closed = False

    def __iter__(self) -> "SortRun":
        return self

    def __next__(self) -> SortEvent:
        if self._closed:
            raise StopIteration
        try:
            return next(self._events)
        except StopIteration:
            self.close()
            raise

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._events.close()
        finally:
            self._sorter._finish()

    def __enter__(self) -> "SortRun":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ImageSorter:
    """Main class for sorting images into the target tree."""

    def __init__(self, config: SortJobConfig, resolver: Optional[DateResolver] = None):
        self.config = config
        self.resolver = resolver or DateResolver()
        self.planner = PathPlanner(config)
        self.logger = get_logger()
        self._state = SortState.IDLE
        self._state_lock = threading.Lock()

    @property
    def state(self) -> SortState:
        with self._state_lock:
            return self._state

    @property
    def is_sorting(self) -> bool:
        return self.state is SortState.RUNNING

    def start(self, dry_run: bool = False,
              cancel_event: Optional[threading.Event] = None) -> SortRun:
        """Begin a run and return its event stream.

        Raises SortInProgressError if a run is already active and
        ConfigurationError if the configuration is invalid; in both cases
        nothing has been touched.
        """
        with self._state_lock:
            if self._state is SortState.RUNNING:
                raise SortInProgressError("Sorting is already in progress.")
            self.config.validate()
            self._state = SortState.RUNNING

        file_ops = FileOperations(dry_run=dry_run, keep_original=self.config.keep_original,
                                  overwrite=self.config.overwrite)
        return SortRun(self, self._run(file_ops, cancel_event))

    def sort(self, dry_run: bool = False,
             cancel_event: Optional[threading.Event] = None) -> List[SortEvent]:
        """Run to completion and return every event."""
        with self.start(dry_run=dry_run, cancel_event=cancel_event) as run:
            return list(run)

    def _finish(self) -> None:
        with self._state_lock:
            self._state = SortState.IDLE

    def find_image_files(self) -> List[Path]:
        """Find all supported images under the source directory, in path order."""
        return sorted(
            file_path for file_path in self.config.source.rglob("*")
            if file_path.is_file() and is_supported_image(file_path)
        )

    def plan_destination(self, image_path: Path) -> PlannedDestination:
        resolved = None
        # Name and size sorts only read dates when renaming
        if self.planner.needs_date:
            resolved = self.resolver.resolve(image_path)
            self.logger.debug(f"Date for {image_path}: {resolved.taken} ({resolved.source.value})")
        return self.planner.plan(image_path, resolved)

    def process_image(self, image_path: Path, file_ops: FileOperations,
                      claimed: Set[Path]) -> Path:
        """Plan, de-duplicate and transfer one image; returns its new path."""
        planned = self.plan_destination(image_path)
        dest_path = planned.path

        if dest_path.exists() and dest_path.samefile(image_path):
            self.logger.debug(f"{image_path} is already in place")
            claimed.add(dest_path)
            return dest_path

        if not self.config.overwrite:
            dest_path = unique_path(dest_path, lambda p: p in claimed or p.exists())

        file_ops.transfer(image_path, dest_path)
        claimed.add(dest_path)
        return dest_path

    def _run(self, file_ops: FileOperations,
             cancel_event: Optional[threading.Event]) -> Iterator[SortEvent]:
        # Runs on exhaustion, close() and garbage collection of an abandoned run
        try:
            yield from self._events(file_ops, cancel_event)
        finally:
            self._finish()

    def _events(self, file_ops: FileOperations,
                cancel_event: Optional[threading.Event]) -> Iterator[SortEvent]:
        self.logger.info(f"Starting sort: {self.config.source} -> {self.config.target}")
        self.logger.info(f"Mode: {file_ops.mode}, sort by {self.config.sort_by.value}")
        yield SortEvent(SortEventKind.STARTED, "Sorting started.", 0)

        try:
            image_files = self.find_image_files()
            if not image_files:
                yield SortEvent(SortEventKind.COMPLETED, "No images found to sort.", 100)
                return

            file_ops.ensure_directory(self.config.target)
        except OSError as e:
            self.logger.error(f"Sort failed: {e}")
            yield SortEvent(SortEventKind.FAILED, f"An error occurred: {e}", 0)
            return

        total = len(image_files)
        claimed: Set[Path] = set()
        for index, image_path in enumerate(image_files):
            if cancel_event is not None and cancel_event.is_set():
                self.logger.warning(f"Sorting cancelled after {index} of {total} files")
                yield SortEvent(SortEventKind.CANCELLED, "Sorting was cancelled.",
                                percent(index, total))
                return

            progress = percent(index + 1, total)
            try:
                new_path = self.process_image(image_path, file_ops, claimed)
            except (ImageSortError, OSError, ValueError) as e:
                self.logger.error(f"Error processing {image_path}: {e}")
                yield SortEvent(SortEventKind.ERROR, f"Error processing {image_path}: {e}",
                                progress, source=image_path)
                continue

            yield SortEvent(SortEventKind.SORTED, f"Sorted: {image_path} -> {new_path}",
                            progress, source=image_path, destination=new_path)

        self.logger.info(f"Sorting completed: {total} files")
        yield SortEvent(SortEventKind.COMPLETED, "Sorting completed successfully.", 100)
