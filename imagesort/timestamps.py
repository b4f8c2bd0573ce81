"""Date-taken resolution for image files."""

import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

import exifread
from PIL import ExifTags, Image

from .constants import MIN_PLAUSIBLE_YEAR, SUSPICIOUS_DATES, get_logger
from .models import DateSource, ResolvedDate


logger = get_logger("imagesort.timestamps")

# Handles raw EXIF (2024:06:15 10:30:00) and dashed ISO-style strings, with
# optional sub-seconds and zone suffix that are ignored
_EXIF_DATETIME = re.compile(
    r'\s*(\d{4})[-:](\d{2})[-:](\d{2})[T ](\d{2}):(\d{2}):(\d{2})(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?'
)

# exifread tag names for the same fields, in priority order
_EXIFREAD_TAGS = ("EXIF DateTimeOriginal", "EXIF DateTimeDigitized", "Image DateTime")


def parse_exif_datetime(value) -> Optional[datetime]:
    """Parse an EXIF date-time value; None for blank, zeroed or malformed values."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")

    text = str(value).replace("\x00", "").strip()
    match = _EXIF_DATETIME.match(text)
    if not match:
        return None

    fields = [int(part) for part in match.groups()]
    if not any(fields):
        return None

    try:
        return datetime(*fields)
    except ValueError:
        return None


def read_pillow_dates(image_path: Path) -> List[object]:
    """Raw DateTimeOriginal, DateTimeDigitized and DateTime values via Pillow."""
    with Image.open(image_path) as img:
        exif = img.getexif()
        # The Exif sub-IFD may be read lazily from the open file
        sub_ifd = exif.get_ifd(ExifTags.IFD.Exif)
        return [
            sub_ifd.get(ExifTags.Base.DateTimeOriginal),
            sub_ifd.get(ExifTags.Base.DateTimeDigitized),
            exif.get(ExifTags.Base.DateTime),
        ]


def read_exifread_dates(image_path: Path) -> List[object]:
    """Same fields via ExifRead, which also understands TIFF-based RAW containers."""
    with open(image_path, "rb") as f:
        tags = exifread.process_file(f, details=False)
    return [tags[name].printable if name in tags else None for name in _EXIFREAD_TAGS]


def get_file_times(file_path: Path) -> Tuple[Optional[float], Optional[float]]:
    """Return (creation, modification) POSIX timestamps, None where unknown.

    Creation time is st_birthtime where the platform records it, otherwise
    st_ctime.
    """
    stat = file_path.stat()
    created = getattr(stat, "st_birthtime", None)
    if created is None:
        created = stat.st_ctime
    return created, stat.st_mtime


class DateResolver:
    """Determine the best-available 'date taken' for an image.

    Embedded capture metadata wins when it passes the plausibility filter;
    otherwise the earlier of the file's creation and modification times is
    used; otherwise the current time.
    """

    readers: Tuple[Callable[[Path], Iterable[object]], ...] = (read_pillow_dates, read_exifread_dates)

    def __init__(self, now: Callable[[], datetime] = datetime.now,
                 readers: Optional[Iterable[Callable[[Path], Iterable[object]]]] = None):
        self.now = now
        if readers is not None:
            self.readers = tuple(readers)

    def resolve(self, image_path: Path) -> ResolvedDate:
        """Resolve a date for the file. Never raises."""
        metadata_date = self.read_metadata_date(image_path)
        if metadata_date and self.is_plausible(metadata_date):
            return ResolvedDate(metadata_date, DateSource.METADATA)

        fs_date = self.filesystem_date(image_path)
        if fs_date:
            return ResolvedDate(fs_date, DateSource.FILESYSTEM)

        logger.debug(f"No usable timestamps for {image_path}, using current time")
        return ResolvedDate(self.now(), DateSource.NOW)

    def read_metadata_date(self, image_path: Path) -> Optional[datetime]:
        """First parseable EXIF capture date, or None when absent or unreadable."""
        for reader in self.readers:
            try:
                values = reader(image_path)
            except Exception as e:
                logger.debug(f"Failed to read EXIF from {image_path} with {reader.__name__}: {e}")
                continue

            for value in values:
                parsed = parse_exif_datetime(value)
                if parsed:
                    return parsed

        return None

    def is_plausible(self, taken: datetime) -> bool:
        """Reject future dates, camera reset defaults and dates before digital cameras."""
        if taken > self.now():
            logger.debug(f"EXIF date is in the future: {taken:%Y-%m-%d %H:%M:%S}")
            return False

        if taken.date() in SUSPICIOUS_DATES:
            logger.debug(f"EXIF date appears to be a camera reset timestamp: {taken:%Y-%m-%d %H:%M:%S}")
            return False

        if taken.year < MIN_PLAUSIBLE_YEAR:
            logger.debug(f"EXIF date is suspiciously old: {taken:%Y-%m-%d %H:%M:%S}")
            return False

        return True

    def filesystem_date(self, image_path: Path) -> Optional[datetime]:
        """Earlier of creation and modification time.

        Zero, future and pre-1995 timestamps are ignored, so an unzipped file
        carrying the DOS epoch falls through to the current time.
        """
        try:
            times = get_file_times(image_path)
        except OSError as e:
            logger.debug(f"Could not stat {image_path}: {e}")
            return None

        now = self.now()
        candidates = []
        for timestamp in times:
            if not timestamp or timestamp <= 0:
                continue
            try:
                candidate = datetime.fromtimestamp(timestamp)
            except (OverflowError, OSError, ValueError):
                continue

            if candidate > now or candidate.year < MIN_PLAUSIBLE_YEAR:
                logger.debug(f"Ignoring file time {candidate:%Y-%m-%d %H:%M:%S} for {image_path}")
                continue
            candidates.append(candidate)

        return min(candidates) if candidates else None
