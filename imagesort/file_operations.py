"""
Filesystem mutations for sorted images: directory creation, copy and move.
"""

import shutil
from pathlib import Path

from .constants import get_logger


class FileOperations:
    """Copies or moves files into place, honoring dry-run and overwrite settings."""

    def __init__(self, dry_run: bool, keep_original: bool, overwrite: bool):
        self.dry_run = dry_run
        self.keep_original = keep_original
        self.overwrite = overwrite
        self.logger = get_logger("imagesort.file_operations")

    @property
    def mode(self) -> str:
        if self.dry_run:
            return "DRY RUN"
        return "COPY" if self.keep_original else "MOVE"

    def ensure_directory(self, directory: Path) -> None:
        """Create directory and parents if needed, with dry-run support."""
        if not self.dry_run and not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)

    def transfer(self, source: Path, dest: Path) -> None:
        """Copy or move source to dest; raises OSError on failure."""
        if self.dry_run:
            self.logger.debug(f"[dry run] {source} -> {dest}")
            return

        self.ensure_directory(dest.parent)

        if dest.exists():
            if not self.overwrite:
                raise FileExistsError(f"Destination already exists: {dest}")
            if dest.is_dir():
                raise IsADirectoryError(f"Destination is a directory: {dest}")
            # Replace explicitly; rename does not overwrite on every platform
            if not self.keep_original:
                dest.unlink()

        if self.keep_original:
            shutil.copy2(str(source), str(dest))
        else:
            shutil.move(str(source), str(dest))

        # Verify the operation
        if not dest.exists():
            raise FileNotFoundError(f"File not found after {self.mode.lower()}: {dest}")

        if not self.keep_original and source.exists():
            raise FileExistsError(f"Source file still exists after move: {source}")

        self.logger.info(f"{source} -> {dest}")
