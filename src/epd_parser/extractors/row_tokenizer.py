# src/epd_parser/extractors/row_tokenizer.py
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from epd_parser.core.indicators import PARSE_CODES, ordered_codes
from epd_parser.core.types import RowRecord
from epd_parser.utils.numeric_parser import TOKEN_RE, has_exponent, is_mnd, normalize_minus

logger = logging.getLogger(__name__)

# Rows whose values look like prices (two decimals, no exponent)
CURRENCY_INDICATORS = ("MKI", "ECI")

_GWP_LULUC_RE = re.compile(r"gwp-?luluc", re.IGNORECASE)
_SINGLE_DIGIT_RE = re.compile(r"^[+-]?\d$")
_ZERO_RUN_RE = re.compile(r"E([+-]?\d)(0+)(?=\d[.,])", re.IGNORECASE)
_GLUED_MANTISSA_RE = re.compile(r"E([+-]?\d)(?=\d[.,])", re.IGNORECASE)
_GLUED_SIGN_RE = re.compile(r"E([+-]?\d{1,3})(?=[+-]\d)", re.IGNORECASE)
_GLUED_DIGIT_RE = re.compile(r"E([+-]?\d)(?=\d)", re.IGNORECASE)
_TWO_DECIMALS_RE = re.compile(r"([+-]?\d+[.,]\d{2})(?=\d)")
_LEADING_ZEROS_RE = re.compile(r"^(0{2,})(\d[.,].*)$")


# ============================================================
# Token acceptance predicates
#
# A number-shaped substring is only a value when it does not belong to
# the unit text next to it ("CO2", "1,4-DB", "CFC-11", "m3").
# ============================================================

def _is_alpha(ch: str) -> bool:
    return bool(ch) and ch.isascii() and ch.isalpha()


def is_letter_adjacent(text: str, end: int) -> bool:
    """
    Token is followed by a letter, or by "-" and a letter.

    Also checked after skipping spaces: "1,4 -DB".
    """
    nxt = text[end:end + 1]
    nxt2 = text[end + 1:end + 2]
    if _is_alpha(nxt):
        return True
    if nxt == "-" and _is_alpha(nxt2):
        return True

    rest = text[end:].lstrip()
    return rest[:1] == "-" and _is_alpha(rest[1:2])


def is_glued_to_letters(text: str, start: int, token: str) -> bool:
    """
    Token starts right after a letter ("CO2", "U235").

    Scientific notation glued to a unit ("Euro1,00E+0") still counts as a
    value.
    """
    prev = text[start - 1:start] if start > 0 else ""
    return _is_alpha(prev) and not has_exponent(token)


def is_unit_suffix_digit(text: str, start: int, end: int, token: str) -> bool:
    """
    Lone digit that belongs to the unit.

      - a single digit followed by a minus ("PO4 3- eq")
      - a single non-zero digit right after a word ("kg eq 2"), except
        after the MND marker
    """
    if not _SINGLE_DIGIT_RE.match(token):
        return False

    rest = text[end:].lstrip()
    if rest[:1] in ("-", "−"):
        return True

    before = text[:start].rstrip()
    if token.lstrip("+-") != "0" and _is_alpha(before[-1:]):
        words = before.split()
        return not (words and is_mnd(words[-1]))
    return False


def accept_numeric_token(text: str, start: int, end: int, token: str, *, leading: bool = True) -> bool:
    """
    Acceptance test for one number-shaped match inside a record.

    The unit-suffix rule only applies to the first value of a row; inside
    the value tail a single digit followed by a negative number is a value.
    """
    if is_letter_adjacent(text, end):
        return False
    if is_glued_to_letters(text, start, token):
        return False
    if leading and is_unit_suffix_digit(text, start, end, token):
        return False
    return True


# ============================================================
# Tail repairs
# ============================================================

def split_glued_exponents(tail: str) -> str:
    """
    Separate columns that PDF extraction glued onto an exponent.

      "1,00E+0000,5E+0" -> "1,00E+0 0 0 0,5E+0"
      "1,00E+02,00E+0"  -> "1,00E+0 2,00E+0"
      "1,0E-3-2,0E-1"   -> "1,0E-3 -2,0E-1"
      "6,00E+00"        -> "6,00E+0 0"

    Exponents are read as one digit; a second digit starts a new column.
    """
    def _zeros(m: re.Match) -> str:
        return f"E{m.group(1)} " + " ".join("0" * len(m.group(2))) + " "

    s = _ZERO_RUN_RE.sub(_zeros, tail)
    s = _GLUED_MANTISSA_RE.sub(r"E\1 ", s)
    s = _GLUED_SIGN_RE.sub(r"E\1 ", s)
    s = _GLUED_DIGIT_RE.sub(r"E\1 ", s)
    return s


def split_two_decimal_values(tail: str) -> str:
    """"12,3445,10" -> "12,34 45,10" (prices printed without a gap)."""
    return _TWO_DECIMALS_RE.sub(r"\1 ", tail)


def expand_leading_zero_tokens(tokens: Iterable[str]) -> List[str]:
    """"001,5" -> ["0", "0", "1,5"]: zero columns printed flush."""
    out: List[str] = []
    for tok in tokens:
        m = _LEADING_ZEROS_RE.match(tok)
        if m:
            out.extend(["0"] * len(m.group(1)))
            out.append(m.group(2))
            continue
        out.append(tok)
    return out


# ============================================================
# Indicator detection
# ============================================================

def _rejects_hyphen(code: str, line: str, end: int) -> bool:
    return line[end:end + 1] == "-" and "-" not in code


def _is_luluc_shadow(code: str, text: str) -> bool:
    return code == "GWP" and bool(_GWP_LULUC_RE.search(text))


def _prefix_match(code: str, line: str) -> bool:
    if not line.upper().startswith(code):
        return False

    nxt = line[len(code):len(code) + 1]
    if not nxt.isalpha():
        return True

    # Code printed glued to a capitalised unit: "MKIEuro"
    if not line.startswith(code):
        return False
    if not nxt.isupper():
        return True
    return line[len(code) + 1:len(code) + 2].islower()


def detect_indicator(
    line: str,
    codes: Sequence[str] = PARSE_CODES,
) -> Optional[Tuple[str, int, int]]:
    """
    Indicator code that opens `line`, or a code in parentheses.

    Returns (code, start, end) where end is the offset just past the code.
    Codes must be ordered longest-first.
    """
    trimmed = line.strip()

    for code in codes:
        if not _prefix_match(code, trimmed):
            continue
        if _rejects_hyphen(code, trimmed, len(code)):
            continue
        if _is_luluc_shadow(code, trimmed):
            continue
        return code, 0, len(code)

    for code in codes:
        m = re.search(rf"\({re.escape(code)}\)", trimmed, re.IGNORECASE)
        if m:
            return code, m.start(), m.end()
    return None


def find_indicator_in_line(
    line: str,
    codes: Sequence[str] = PARSE_CODES,
) -> Optional[Tuple[str, int, int]]:
    """
    Earliest whole-word indicator code anywhere in `line`.

    Two-letter codes are matched in upper case only; in lower case they
    are ordinary words.
    """
    best: Optional[Tuple[str, int, int]] = None

    for code in codes:
        flags = re.IGNORECASE if len(code) > 2 else 0
        m = re.search(rf"(?<![A-Za-z0-9-]){re.escape(code)}(?![A-Za-z0-9])", line, flags)
        if not m:
            continue
        if _rejects_hyphen(code, line, m.end()):
            continue
        if _is_luluc_shadow(code, line[m.start():]):
            continue
        if best is None or m.start() < best[1]:
            best = (code, m.start(), m.end())

    return best


# ============================================================
# Record splitting
# ============================================================

def split_record(record: str, indicator: str) -> Optional[Tuple[str, List[str]]]:
    """
    Split the text after an indicator code into (unit, tokens).

    The unit is everything before the first accepted value. Returns None
    when the record holds no value at all.
    """
    compact = " ".join(normalize_minus(record).split())
    currency = indicator.upper() in CURRENCY_INDICATORS

    first_idx: Optional[int] = None
    for m in TOKEN_RE.finditer(compact):
        token = m.group(0)
        if currency or is_mnd(token) or accept_numeric_token(compact, m.start(), m.end(), token):
            first_idx = m.start()
            break

    if first_idx is None:
        return None

    unit = compact[:first_idx].strip()
    tail = split_glued_exponents(compact[first_idx:])
    if currency and not has_exponent(tail):
        tail = split_two_decimal_values(tail)

    tokens: List[str] = []
    for m in TOKEN_RE.finditer(tail):
        token = m.group(0)
        if is_mnd(token):
            tokens.append("MND")
            continue
        if accept_numeric_token(tail, m.start(), m.end(), token, leading=False):
            tokens.append(token)

    tokens = expand_leading_zero_tokens(tokens)
    if not tokens:
        return None
    return unit, tokens


# ============================================================
# Section walk
# ============================================================

def _is_marker_line(line: str, markers: Sequence[str]) -> bool:
    low = line.lower()
    return any(m.lower() in low for m in markers)


def tokenize_section(
    section: str,
    codes: Optional[Iterable[str]] = None,
    *,
    footer_markers: Sequence[str] = (),
    stop_markers: Sequence[str] = (),
) -> List[RowRecord]:
    """
    Group the lines of a results section into one record per indicator.

    A record starts on a line that opens with an indicator code (or holds
    one as a whole word) and runs over the following lines until the next
    indicator line or a footer line. A stop line ends the walk.
    """
    ordered = ordered_codes(codes) if codes else PARSE_CODES
    lines = [ln.strip() for ln in section.split("\n") if ln.strip()]
    records: List[RowRecord] = []

    i = 0
    while i < len(lines):
        line = lines[i]
        if _is_marker_line(line, stop_markers):
            break

        found = detect_indicator(line, ordered) or find_indicator_in_line(line, ordered)
        if found is None:
            i += 1
            continue

        code, _, end = found
        parts = [line[end:]]
        j = i + 1
        while j < len(lines):
            nxt = lines[j]
            if detect_indicator(nxt, ordered):
                break
            if _is_marker_line(nxt, footer_markers) or _is_marker_line(nxt, stop_markers):
                break
            parts.append(nxt)
            j += 1

        split = split_record(" ".join(parts), code)
        if split is None:
            logger.debug("row_tokenizer: %s has no values, skipped", code)
        else:
            unit, tokens = split
            records.append(RowRecord(indicator=code, unit=unit, tokens=tokens))

        i = j

    return records
