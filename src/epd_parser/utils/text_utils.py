from __future__ import annotations

import re
from datetime import date
from typing import Iterable, Optional, Sequence

# Horizontal whitespace: anything \s matches except the line feed
_HSPACE_RE = re.compile(r"[^\S\n]+")
_BLANK_RUN_RE = re.compile(r"\n{3,}")

_ISO_DATE_RE = re.compile(
    r"(?<!\d)(20\d{2})[-/](0?[1-9]|1[0-2])[-/](0?[1-9]|[12]\d|3[01])(?!\d)"
)
_NL_DATE_RE = re.compile(
    r"(?<!\d)(0?[1-9]|[12]\d|3[01])[-/](0?[1-9]|1[0-2])[-/](20\d{2})(?!\d)"
)


def normalize_preserve_lines(text: Optional[str]) -> str:
    """
    Canonical line-oriented form of extracted PDF text.

    Line endings become "\\n", whitespace inside a line collapses to one
    space, lines are trimmed and runs of blank lines shrink to a single
    blank line. Line boundaries are kept. Idempotent.
    """
    if not text:
        return ""

    s = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_HSPACE_RE.sub(" ", line).strip() for line in s.split("\n")]
    joined = "\n".join(lines)
    return _BLANK_RUN_RE.sub("\n\n", joined).strip()


def first_match(text: str, patterns: Iterable[re.Pattern]) -> Optional[str]:
    """First capturing group of the first pattern that matches, trimmed."""
    for pattern in patterns:
        m = pattern.search(text)
        if m and m.group(1):
            value = m.group(1).strip()
            if value:
                return value
    return None


def get_line_value(text: str, label_variants: Sequence[str]) -> Optional[str]:
    """
    Value after the first colon on the first line starting with a label.

    Lines that start with a label but carry nothing after the colon are
    skipped.
    """
    lowered = [label.lower() for label in label_variants]

    for line in text.split("\n"):
        low = line.lower()
        if any(low.startswith(label) for label in lowered):
            raw = ":".join(line.split(":")[1:]).strip()
            if raw:
                return raw
    return None


def value_after_label(text: str, label: str) -> Optional[str]:
    """Value on the line following a bare "Label" or "Label:" line."""
    target = label.lower()
    lines = [line.strip() for line in text.split("\n")]

    for i, line in enumerate(lines):
        low = line.lower()
        if low == target or low == f"{target}:":
            if i + 1 < len(lines) and lines[i + 1]:
                return lines[i + 1]
    return None


def date_from_text(text: Optional[str]) -> Optional[str]:
    """
    First date in `text` as YYYY-MM-DD.

    ISO forms (2022-01-31, 2022/01/31) are tried before Dutch forms
    (31-01-2022, 31/01/2022).
    """
    if not text:
        return None

    m = _ISO_DATE_RE.search(text)
    if m:
        year, month, day = m.groups()
        return f"{year}-{int(month):02d}-{int(day):02d}"

    m = _NL_DATE_RE.search(text)
    if m:
        day, month, year = m.groups()
        return f"{year}-{int(month):02d}-{int(day):02d}"

    return None


def add_years(iso_date: Optional[str], years: int) -> Optional[str]:
    """
    Shift an ISO date by whole years, keeping month and day.

    29 February rolls over to 1 March when the target year has no leap day.
    Returns None for anything that is not a valid calendar date.
    """
    if not iso_date:
        return None
    try:
        start = date.fromisoformat(iso_date)
    except ValueError:
        return None

    try:
        shifted = start.replace(year=start.year + years)
    except ValueError:
        shifted = date(start.year + years, 3, 1)
    return shifted.isoformat()


def collapse_spaces(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()
