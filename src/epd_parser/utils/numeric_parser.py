from __future__ import annotations

import math
import re
from typing import Optional


# Minus look-alikes emitted by PDF text extraction
MINUS_CHARS = [
    "−",  # minus sign
    "‒",  # figure dash
    "–",  # en dash
]

# Number grammar of EPD result tables: 3,655E+0 / -1.2E-3 / 12 / 0,5
NUMBER_PATTERN = r"[+-]?\d+(?:[.,]\d+)?(?:E[+-]?\d+)?"
NUMBER_RE = re.compile(NUMBER_PATTERN, re.IGNORECASE)

# Numbers plus the "not determined" marker
TOKEN_RE = re.compile(rf"\bMND\b|{NUMBER_PATTERN}", re.IGNORECASE)

_EXPONENT_RE = re.compile(r"E[+-]?\d", re.IGNORECASE)


def normalize_minus(s: str) -> str:
    """Replace minus look-alikes with an ASCII hyphen-minus."""
    for ch in MINUS_CHARS:
        s = s.replace(ch, "-")
    return s


def is_mnd(token: str) -> bool:
    return token.strip().upper() == "MND"


def has_exponent(text: str) -> bool:
    return bool(_EXPONENT_RE.search(text))


def parse_number_token(token: Optional[str]) -> Optional[float]:
    """
    Parse one table token.

    Handles:
      - 3,655E+0 / 3.655E+0
      - -1,2E-3
      - 000000 (zero columns printed without separators)
      - 0,5 / 12

    Returns None for MND and for anything that is not a finite number.
    """
    if not token:
        return None

    s = normalize_minus(token.strip())
    if not s or is_mnd(s):
        return None

    if re.match(r"^0+$", s):
        return 0.0

    try:
        value = float(s.replace(",", ".", 1))
    except ValueError:
        return None

    if not math.isfinite(value):
        return None
    return value
