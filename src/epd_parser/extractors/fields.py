from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from epd_parser.core.indicators import set2_marker_pattern
from epd_parser.core.types import LcaStandard, PcrInfo, SetType
from epd_parser.utils.text_utils import add_years, collapse_spaces

logger = logging.getLogger(__name__)

# Default validity window of an EPD when the document states no end date
DEFAULT_VALIDITY_YEARS = 5

LCA_STANDARD_NAME = "NMD Bepalingsmethode"

_VERSION_RE = re.compile(r"(\d+(?:\.\d+){0,2})")
_LCA_VERSION_RE = re.compile(r"(1\.0|1\.1|1\.2)")
_EDITION_YEAR_RE = re.compile(r"\b(20\d{2})\b")

_NMD_PATTERNS = [
    re.compile(r"nationale\s+milieudatabase\s+v?\s*([0-9]+(?:\.[0-9]+)*)", re.IGNORECASE),
    re.compile(r"\bnmd\b[\s:]*(?:database\s*)?v?\s*([0-9]+(?:\.[0-9]+)*)", re.IGNORECASE),
]
_ECOINVENT_PATTERNS = [
    re.compile(r"\becoinvent\b[\s\S]{0,60}?v?\s*([0-9]+(?:\.[0-9]+)*)", re.IGNORECASE),
]

_SET2_MARKERS = set2_marker_pattern()


# =====================================================================
# Dates
# =====================================================================

def resolve_expiration_date(
    publication_date: Optional[str],
    expiration_date: Optional[str],
) -> Optional[str]:
    """
    Expiration date, defaulting to publication + DEFAULT_VALIDITY_YEARS.
    """
    if expiration_date:
        return expiration_date
    if not publication_date:
        return None

    fallback = add_years(publication_date, DEFAULT_VALIDITY_YEARS)
    if fallback:
        logger.debug(
            "fields: no expiration date, using %s (+%d years)",
            fallback,
            DEFAULT_VALIDITY_YEARS,
        )
    return fallback


# =====================================================================
# PCR / LCA standard
# =====================================================================

def strip_pcr_words(raw: str) -> str:
    """Remove the word PCR, "versie" and version numbers from a PCR line."""
    name = re.sub(r"pcr[:\s]*", "", raw, count=1, flags=re.IGNORECASE)
    name = re.sub(r"versie", "", name, flags=re.IGNORECASE)
    name = re.sub(r"\d+(?:\.\d+){0,2}", "", name)
    return collapse_spaces(name)


def normalize_pcr_info(raw: Optional[str]) -> Optional[PcrInfo]:
    """
    Split a free-text PCR reference into name and version.

    "PCR Asfalt versie 1.0" -> PcrInfo(name="Asfalt", version="1.0")
    """
    if not raw:
        return None

    cleaned = collapse_spaces(raw)
    m = _VERSION_RE.search(cleaned)
    version = m.group(1) if m else None

    name = strip_pcr_words(cleaned) or "PCR"
    return PcrInfo(name=name, version=version)


def normalize_lca_standard(raw: Optional[str]) -> LcaStandard:
    if not raw:
        return LcaStandard(name=LCA_STANDARD_NAME)

    cleaned = collapse_spaces(raw)
    version = _LCA_VERSION_RE.search(cleaned)
    year = _EDITION_YEAR_RE.search(cleaned)

    return LcaStandard(
        name=LCA_STANDARD_NAME,
        version=version.group(1) if version else None,
        raw=cleaned,
        edition_year=year.group(1) if year else None,
    )


def normalize_lca_method(raw: Optional[str]) -> Optional[str]:
    """Canonical "NMD Bepalingsmethode <version>" string for the flat record."""
    if not raw:
        return None

    s = collapse_spaces(raw)
    m = (
        re.search(r"bepalingsmethode[^0-9]*?(\d+(?:\.\d+){0,2})", s, re.IGNORECASE)
        or re.search(r"versie\s*(\d+(?:\.\d+){0,2})", s, re.IGNORECASE)
    )
    if m:
        return f"{LCA_STANDARD_NAME} {m.group(1)}"
    if re.search(r"bepalingsmethode", s, re.IGNORECASE):
        return LCA_STANDARD_NAME
    return s


# =====================================================================
# Databases
# =====================================================================

@dataclass
class DatabaseInfo:
    canonical: Optional[str] = None
    nmd: Optional[str] = None
    ecoinvent: Optional[str] = None


def _search_version(text: str, patterns) -> Optional[str]:
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            return m.group(1)
    return None


def extract_nmd_version(text: str) -> Optional[str]:
    return _search_version(text, _NMD_PATTERNS)


def extract_ecoinvent_version(text: str) -> Optional[str]:
    return _search_version(text, _ECOINVENT_PATTERNS)


def normalize_databases(raw: Optional[str], full_text: str = "") -> DatabaseInfo:
    """
    Split a database reference into NMD and EcoInvent versions.

    The labelled value is searched first, then the whole document. The
    canonical string joins whatever was found with " | " and falls back to
    the labelled text.
    """
    s = collapse_spaces(raw or "")

    nmd_v = extract_nmd_version(s) or extract_nmd_version(full_text)
    eco_v = extract_ecoinvent_version(s) or extract_ecoinvent_version(full_text)

    nmd = f"NMD v{nmd_v}" if nmd_v else None
    ecoinvent = f"EcoInvent v{eco_v}" if eco_v else None

    parts = [p for p in (nmd, ecoinvent) if p]
    canonical = " | ".join(parts) if parts else (s or None)
    return DatabaseInfo(canonical=canonical, nmd=nmd, ecoinvent=ecoinvent)


# =====================================================================
# Declaration set
# =====================================================================

def detect_standard_set(text: str) -> SetType:
    t = text.lower()
    has1 = bool(re.search(r"sbk[\s_-]*set[\s_-]*1\b", t)) or "en 15804+a1" in t or "en15804+a1" in t
    has2 = bool(re.search(r"sbk[\s_-]*set[\s_-]*2\b", t)) or "en 15804+a2" in t or "en15804+a2" in t

    if has1 and has2:
        return SetType.SBK_BOTH
    if has1:
        return SetType.SBK_SET_1
    if has2:
        return SetType.SBK_SET_2
    return SetType.UNKNOWN


def detect_set2_indicators(text: str) -> bool:
    """True when the text carries indicator codes that only exist in set 2."""
    return bool(_SET2_MARKERS.search(text))


# =====================================================================
# Small value normalizers
# =====================================================================

def normalize_declared_unit(raw: Optional[str]) -> Optional[str]:
    """
    "1 tonne" -> "1 ton", "1 pieces" -> "1 stuk"; anything else unchanged.
    """
    if not raw:
        return None

    cleaned = collapse_spaces(raw)
    m = re.match(r"^(\d+(?:[.,]\d+)?)\s*(.*)$", cleaned)
    if not m:
        return cleaned

    value = m.group(1).replace(",", ".")
    unit_raw = m.group(2).lower()

    if re.search(r"\b(?:ton|tons|tonne|tonnes|t)\b", unit_raw):
        return f"{value} ton"
    if re.search(r"\b(?:stuk|stuks|piece|pieces|p|st)\b", unit_raw):
        return f"{value} stuk"
    return cleaned


def parse_verified(raw: Optional[str]) -> Optional[bool]:
    if not raw:
        return None

    low = raw.lower()
    if re.search(r"\b(?:yes|ja|true)\b", low):
        return True
    if re.search(r"\b(?:no|nee|false)\b", low):
        return False
    return None
