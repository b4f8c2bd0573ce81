"""Progress tracking context for imagesort runs."""

from typing import Optional
from rich.progress import Progress, TaskID


class ProgressContext:
    """Encapsulates progress tracking state for cleaner parameter passing."""

    def __init__(self, progress: Optional[Progress] = None, task: Optional[TaskID] = None):
        self.progress = progress
        self.task = task

    @property
    def is_active(self) -> bool:
        """Check if progress tracking is active."""
        return self.progress is not None and self.task is not None

    def update(self, description: str, percent: Optional[int] = None) -> None:
        """Update description and, optionally, the completed percentage."""
        if not self.is_active:
            return
        if percent is None:
            self.progress.update(self.task, description=description)
        else:
            self.progress.update(self.task, description=description, completed=percent)

    def log(self, message: str) -> None:
        """Print a line above the progress bar."""
        if self.is_active:
            self.progress.console.print(message, highlight=False)
