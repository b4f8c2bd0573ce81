"""
Run history for imagesort: per-run log files and a global audit log.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SortJobConfig
    from .stats import StatsManager


class HistoryManager:
    """Manages run history and the per-run log file."""

    def __init__(self, target_path: Path, root_dir: Path, dry_run: bool = False):
        self.target_path = target_path
        self.root_dir = root_dir
        self.dry_run = dry_run
        self.history_dir = self.root_dir / "history"
        self.runs_audit_log = self.root_dir / "runs.log"
        self._file_handler: Optional[logging.FileHandler] = None

        self.run_folder_name = self._choose_run_folder_name()
        self.run_folder = self.history_dir / self.run_folder_name
        self.run_log = self.run_folder / "sort.log"

    def _choose_run_folder_name(self) -> str:
        """Timestamped folder name, with a counter when the name is taken."""
        timestamp = datetime.now().strftime("%Y-%m-%d")
        base_name = f"{timestamp}+{self._sanitize_target_name(self.target_path)}"

        folder_name = base_name
        counter = 1
        while (self.history_dir / folder_name).exists():
            folder_name = f"{base_name}-{counter:02d}"
            counter += 1
        return folder_name

    def _sanitize_target_name(self, target_path: Path) -> str:
        """Convert target path to safe folder name."""
        name = target_path.name
        sanitized = re.sub(r'[^\w\-_]', '-', name)
        sanitized = re.sub(r'-+', '-', sanitized)
        return sanitized.strip('-') or "target"

    def setup_run_logger(self, logger: logging.Logger) -> None:
        """Configure logger to write to the run-specific log file."""
        if self.dry_run:
            return

        self.run_folder.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(self.run_log, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            '%(asctime)s [%(name)s] %(levelname)s: %(message)s'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        self._file_handler = file_handler

        # Ensure logger level allows DEBUG messages to reach the file handler
        logger.setLevel(logging.DEBUG)

    def close_run_logger(self, logger: logging.Logger) -> None:
        if self._file_handler is None:
            return
        logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None

    def log_run_summary(self, config: "SortJobConfig", stats_manager: "StatsManager",
                        status: str) -> None:
        """Append a one-line summary of the run to the global runs.log."""
        if self.dry_run:
            return

        self.root_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        mode = "COPY" if config.keep_original else "MOVE"
        summary = (
            f"{timestamp} | {status} | "
            f"Source: {config.source} | Target: {config.target} | "
            f"Sort: {config.sort_by.value} | Mode: {mode} | "
            f"Sorted: {stats_manager.get_sorted()} | Errors: {stats_manager.get_errors()} | "
            f"Size: {stats_manager.get_total_size_mb():.1f}MB | History: {self.run_folder_name}\n"
        )

        with open(self.runs_audit_log, 'a', encoding='utf-8') as f:
            f.write(summary)
