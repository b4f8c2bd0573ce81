"""
Structure template translation for date-based folder layouts.

A structure template such as ``YYYY/MM/DD`` mixes human-readable date tokens
with literal text and path separators. ``translate_structure`` turns it into a
pattern of ``%`` codes and ``format_date`` renders a timestamp through that
pattern. Codes prefixed with ``-`` (``%-m``, ``%-d``, ...) are rendered without
zero padding on every platform.
"""

import re
from datetime import datetime
from typing import Dict, Optional, Tuple

from .constants import DEFAULT_DATE_PATTERN

# Template token -> format code, synonyms grouped by field
TOKEN_FORMATS: Dict[str, str] = {
    # Year
    "YEAR": "%Y",
    "YYYY": "%Y",
    "YY": "%y",

    # Month
    "MONTH": "%B",
    "MMMM": "%B",
    "MMM": "%b",
    "MONTHNUM": "%m",
    "MM": "%m",
    "M": "%-m",

    # Day
    "DAY": "%A",
    "DDDD": "%A",
    "DDD": "%a",
    "DAYNUM": "%d",
    "DD": "%d",
    "D": "%-d",

    # Hour
    "HOUR": "%H",
    "HH": "%H",
    "H": "%-H",

    # Minute
    "MINUTE": "%M",
    "mm": "%M",
    "m": "%-M",

    # Second
    "SECOND": "%S",
    "SS": "%S",
    "S": "%-S",
}

# Longest first so a scan never settles for a shorter prefix
_TOKENS_BY_LENGTH = sorted(TOKEN_FORMATS, key=len, reverse=True)

_FORMAT_CODE = re.compile(r"%%|%(-?)([YymBbdAaHMS])")
_TEXT_CODES = ("B", "b", "A", "a")


def _is_boundary(text: str, index: int) -> bool:
    """True if the character at index is outside the text or not alphanumeric."""
    return index < 0 or index >= len(text) or not text[index].isalnum()


def match_token(template: str, position: int) -> Optional[Tuple[str, str]]:
    """Return the longest boundary-delimited (token, format) starting at position."""
    if not _is_boundary(template, position - 1):
        return None

    for token in _TOKENS_BY_LENGTH:
        if template.startswith(token, position) and _is_boundary(template, position + len(token)):
            return token, TOKEN_FORMATS[token]
    return None


def translate_structure(template: str) -> str:
    """Translate a structure template into a format pattern.

    Tokens are only recognized when they are not glued to other letters or
    digits, so ``SUMMARY`` stays literal while ``YYYY/MM`` becomes ``%Y/%m``.
    Literal percent signs are escaped.
    """
    if not template:
        return ""

    pieces = []
    position = 0
    while position < len(template):
        match = match_token(template, position)
        if match:
            token, code = match
            pieces.append(code)
            position += len(token)
            continue

        char = template[position]
        pieces.append("%%" if char == "%" else char)
        position += 1

    return "".join(pieces)


def format_date(pattern: str, when: datetime) -> str:
    """Render a timestamp through a pattern produced by translate_structure.

    Unknown codes are left untouched.
    """
    def substitute(match: re.Match) -> str:
        if match.group(0) == "%%":
            return "%"

        unpadded, code = match.groups()
        if code in _TEXT_CODES:
            return when.strftime(f"%{code}")

        if code == "Y":
            return str(when.year) if unpadded else f"{when.year:04d}"

        value = {
            "y": when.year % 100,
            "m": when.month,
            "d": when.day,
            "H": when.hour,
            "M": when.minute,
            "S": when.second,
        }[code]
        return str(value) if unpadded else f"{value:02d}"

    return _FORMAT_CODE.sub(substitute, pattern)


def render_structure(template: str, when: datetime) -> str:
    """Render a structure template for a timestamp; empty templates use year/month."""
    pattern = translate_structure(template) or DEFAULT_DATE_PATTERN
    return format_date(pattern, when)
