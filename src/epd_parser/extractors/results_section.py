# src/epd_parser/extractors/results_section.py
from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from epd_parser.core.types import SetType

logger = logging.getLogger(__name__)

DEFAULT_GENERIC_HEADING = r"sbk[\s_-]*set[\s_-]*{set_no}"


# ============================================================
# Helpers
# ============================================================

def _compile_headings(patterns: Sequence[str], set_number: int) -> List[re.Pattern]:
    """
    Substitute the set number into heading templates.

    A trailing digit guard keeps "set 1" from matching "set 10".
    """
    return [
        re.compile(p.replace("{set_no}", str(set_number)) + r"(?!\d)", re.IGNORECASE)
        for p in patterns
    ]


def _line_start(text: str, index: int) -> int:
    return text.rfind("\n", 0, index) + 1


def _earliest_marker(lower: str, markers: Sequence[str], start: int) -> Optional[int]:
    hits = [lower.find(m.lower(), start) for m in markers]
    hits = [h for h in hits if h >= 0]
    return min(hits) if hits else None


def _first_heading(text: str, patterns: Sequence[re.Pattern], start: int = 0) -> Optional[re.Match]:
    """Earliest match of any pattern at or after `start`."""
    best = None
    for pattern in patterns:
        m = pattern.search(text, start)
        if m and (best is None or m.start() < best.start()):
            best = m
    return best


# ============================================================
# Public API
# ============================================================

def locate_results_section(
    text: str,
    set_number: int,
    *,
    headings: Sequence[str],
    footer_markers: Sequence[str] = (),
    max_length: int = 14000,
    generic_heading: str = DEFAULT_GENERIC_HEADING,
) -> Optional[str]:
    """
    Slice the results table of one declaration set out of `text`.

    The section starts at the beginning of the line holding the set heading
    and ends at the earliest of:
      - a footer marker (signature blocks of the LCA software vendor)
      - the heading of the other set
      - `max_length` characters after the start

    Returns None when the document has no heading for this set.
    """
    if not text or set_number not in (1, 2):
        return None

    layout_patterns = _compile_headings(headings, set_number)
    generic_patterns = _compile_headings([generic_heading], set_number)

    m = _first_heading(text, layout_patterns)
    used_generic = False
    if m is None:
        m = _first_heading(text, generic_patterns)
        used_generic = m is not None
    if m is None:
        logger.debug("results_section: no heading for set %d", set_number)
        return None

    start = _line_start(text, m.start())
    lower = text.lower()
    candidates = [start + max_length, len(text)]

    footer_idx = _earliest_marker(lower, footer_markers, m.end())
    if footer_idx is not None:
        candidates.append(footer_idx)

    other = 2 if set_number == 1 else 1
    other_patterns = _compile_headings(headings, other)
    if used_generic:
        other_patterns += _compile_headings([generic_heading], other)
    other_m = _first_heading(text, other_patterns, m.end())
    if other_m is not None:
        candidates.append(_line_start(text, other_m.start()))

    end = min(candidates)
    logger.debug(
        "results_section: set %d -> [%d:%d]%s",
        set_number,
        start,
        end,
        " (generic heading)" if used_generic else "",
    )
    return text[start:end]


def locate_fallback_section(
    text: str,
    set_type: SetType,
    *,
    headings: Sequence[str],
    set2_end_markers: Sequence[str] = (),
    footer_markers: Sequence[str] = (),
    max_length: int = 14000,
) -> Optional[str]:
    """
    Results section of a document that names no SBK set at all.

    Starts at the first impact heading, preferring one that follows the
    word "results". For set 2 the section stops at the resource-use table.
    """
    if not text or not headings:
        return None

    pattern = re.compile("|".join(f"(?:{h})" for h in headings), re.IGNORECASE)
    lower = text.lower()

    m = pattern.search(text)
    if m is None:
        return None
    start_idx = m.start()

    results_idx = lower.find("results")
    if results_idx >= 0:
        after = pattern.search(text, results_idx)
        if after:
            start_idx = after.start()

    start = _line_start(text, start_idx)
    candidates = [start + max_length, len(text)]

    footer_idx = _earliest_marker(lower, footer_markers, start_idx + 1)
    if footer_idx is not None:
        candidates.append(footer_idx)

    if set_type == SetType.SBK_SET_2:
        end_idx = _earliest_marker(lower, set2_end_markers, start_idx + 1)
        if end_idx is not None:
            candidates.append(end_idx)

    end = min(candidates)
    logger.debug("results_section: fallback section for %s -> [%d:%d]", set_type.value, start, end)
    return text[start:end]
