"""
pytest configuration and fixtures for imagesort tests.
"""

import io
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pytest


@dataclass
class CliResult:
    """Result from running CLI command."""
    exit_code: int
    output: str
    error: str


def set_mtime(file_path: Path, when: datetime) -> None:
    timestamp = when.timestamp()
    os.utime(file_path, (timestamp, timestamp))


@pytest.fixture
def test_config_path(tmp_path):
    """Per-test config path; history and run logs land next to it."""
    config_dir = tmp_path / "imagesort_config"
    config_dir.mkdir()
    return config_dir / "config.yml"


@pytest.fixture
def cli_runner():
    """Create a CLI runner that captures output and uses test config."""

    def run_cli(*args, config_path=None):
        """Run imagesort CLI with given arguments.

        Returns:
            CliResult with exit_code, output, and error
        """
        from imagesort.cli import main

        old_stdout = sys.stdout
        old_stderr = sys.stderr
        stdout = io.StringIO()
        stderr = io.StringIO()

        try:
            sys.stdout = stdout
            sys.stderr = stderr
            exit_code = main([str(a) for a in args], config_path=config_path)
            return CliResult(exit_code=exit_code, output=stdout.getvalue(),
                             error=stderr.getvalue())
        except SystemExit as e:
            # argparse errors and --help exit through SystemExit
            return CliResult(
                exit_code=e.code if e.code is not None else 0,
                output=stdout.getvalue(),
                error=stderr.getvalue()
            )
        finally:
            sys.stdout = old_stdout
            sys.stderr = old_stderr

    return run_cli


@pytest.fixture
def create_test_files(tmp_path):
    """Helper to create test files with specific properties."""

    def create_files(file_specs: List[dict], root: Optional[Path] = None) -> Path:
        """Create test files based on specifications.

        Args:
            file_specs: List of dicts with keys:
                - name: relative filename
                - content: file content (optional)
                - size: file length in bytes, sparse (optional)
                - mtime: modification time as datetime (optional)

        Returns:
            Path to directory containing created files
        """
        test_dir = root or tmp_path / "source"
        test_dir.mkdir(parents=True, exist_ok=True)

        for spec in file_specs:
            file_path = test_dir / spec['name']
            file_path.parent.mkdir(parents=True, exist_ok=True)

            if 'size' in spec:
                with open(file_path, 'wb') as f:
                    f.truncate(spec['size'])
            else:
                content = spec.get('content', b'test file content')
                if isinstance(content, str):
                    file_path.write_text(content)
                else:
                    file_path.write_bytes(content)

            if 'mtime' in spec:
                set_mtime(file_path, spec['mtime'])

        return test_dir

    return create_files


@pytest.fixture
def make_image():
    """Write a small JPEG with optional EXIF date fields."""
    piexif = pytest.importorskip("piexif")
    from PIL import Image

    def make(path: Path, original: Optional[str] = None, digitized: Optional[str] = None,
             datetime_tag: Optional[str] = None, mtime: Optional[datetime] = None) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)

        zeroth = {}
        exif_ifd = {}
        if datetime_tag:
            zeroth[piexif.ImageIFD.DateTime] = datetime_tag.encode("ascii")
        if original:
            exif_ifd[piexif.ExifIFD.DateTimeOriginal] = original.encode("ascii")
        if digitized:
            exif_ifd[piexif.ExifIFD.DateTimeDigitized] = digitized.encode("ascii")

        image = Image.new("RGB", (16, 16), "white")
        if zeroth or exif_ifd:
            image.save(path, "JPEG", exif=piexif.dump({"0th": zeroth, "Exif": exif_ifd}))
        else:
            image.save(path, "JPEG")

        if mtime:
            set_mtime(path, mtime)
        return path

    return make


@pytest.fixture
def assert_file_structure():
    """Helper to assert expected file structure."""

    def check_structure(base_path: Path, expected_structure: dict):
        """Assert that directory has expected structure.

        Args:
            base_path: Root directory to check
            expected_structure: Dict describing expected structure
                e.g., {
                    "2024": {
                        "01": ["file1.jpg", "file2.jpg"],
                        "02": ["file3.jpg"]
                    }
                }
        """
        def check_level(path: Path, structure: dict):
            for name, value in structure.items():
                item_path = path / name
                assert item_path.exists(), f"Expected {item_path} to exist"

                if isinstance(value, dict):
                    assert item_path.is_dir(), f"Expected {item_path} to be a directory"
                    check_level(item_path, value)
                elif isinstance(value, list):
                    assert item_path.is_dir(), f"Expected {item_path} to be a directory"
                    actual_files = sorted([f.name for f in item_path.iterdir() if f.is_file()])
                    expected_files = sorted(value)
                    assert actual_files == expected_files, \
                        f"Expected files {expected_files} in {item_path}, got {actual_files}"

        check_level(base_path, expected_structure)

    return check_structure
