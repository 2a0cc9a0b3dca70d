# src/epd_parser/parsers/asphalt_ecochain.py
from __future__ import annotations

import logging
import re
from typing import Optional

from epd_parser.core.types import ParsedEpd, ParserMatch, ParserResult, SetType
from epd_parser.extractors.fields import (
    detect_standard_set,
    normalize_databases,
    normalize_lca_method,
    resolve_expiration_date,
    strip_pcr_words,
)
from epd_parser.extractors.module_resolver import build_module_declarations
from epd_parser.normalization.adapter import LEGACY_STAGES, legacy_to_normalized, results_to_impacts
from epd_parser.parsers.base import EpdParser, Meta
from epd_parser.utils.text_utils import (
    collapse_spaces,
    date_from_text,
    first_match,
    get_line_value,
    normalize_preserve_lines,
)

logger = logging.getLogger(__name__)


# ============================================================
# Field patterns
# ============================================================

PRODUCT_LABELS = ["Product:", "Productnaam", "Product naam", "Product name", "Product"]
PRODUCT_PATTERNS = [
    re.compile(r"^product\s*naam[:\s]*([^\n]{2,160})", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^product\s*name[:\s]*([^\n]{2,160})", re.IGNORECASE | re.MULTILINE),
]

UNIT_LABELS = ["Eenheid:", "Functionele eenheid", "Functional unit", "Eenheid"]
UNIT_PATTERNS = [
    re.compile(r"^functionele\s*eenheid[:\s]*([^\n]{2,160})", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^functional\s*unit[:\s]*([^\n]{2,160})", re.IGNORECASE | re.MULTILINE),
]

PRODUCER_LABELS = ["Producent:", "Producent", "Producer"]
PRODUCER_PATTERNS = [
    re.compile(r"^producent[:\s]*([^\n]{2,160})", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^producer[:\s]*([^\n]{2,160})", re.IGNORECASE | re.MULTILINE),
]

PUBLICATION_LABELS = ["Datum van publicatie", "Publicatie datum", "Publicatie"]
PUBLICATION_PATTERNS = [
    re.compile(r"datum\s+van\s+publicatie[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"publicatie[:\s]*datum[:\s]*([^\n]+)", re.IGNORECASE),
]

EXPIRATION_LABELS = ["Einde geldigheid", "Geldig tot", "Expiration"]
EXPIRATION_PATTERNS = [
    re.compile(r"einde\s*geldigheid[:\s]*([^\n]+)", re.IGNORECASE),
]

VERIFIER_LABELS = ["Verificateur", "Verifier", "Toetser"]
VERIFIER_PATTERNS = [
    re.compile(r"(?:verificateur|verifier|toetser)\s*[:\-]\s*([^\n]{2,120})", re.IGNORECASE),
    # "Verificateur" with a broken "fi" ligature
    re.compile(r"veri.{0,3}cateur\s*[:\-]\s*([^\n]{2,120})", re.IGNORECASE),
]

LCA_LABELS = ["LCA standaard", "LCA-methode", "Bepalingsmethode"]
LCA_PATTERNS = [
    re.compile(r"lca\s*standaard[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"bepalingsmethode[:\s]*([^\n]+)", re.IGNORECASE),
]

PCR_LABELS = ["PCR", "PCR:"]
PCR_PATTERNS = [
    re.compile(r"^pcr[:\s]*([^\n]+)", re.IGNORECASE | re.MULTILINE),
    re.compile(r"pcr[-\s]*asfalt\s*versie[:\s]*([^\n]+)", re.IGNORECASE),
]

DATABASE_LABELS = ["Standaard database", "Database"]
DATABASE_PATTERNS = [
    re.compile(r"standaard\s*database[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"database[:\s]*([^\n]+)", re.IGNORECASE),
]


def _field(text: str, labels, patterns) -> Optional[str]:
    return get_line_value(text, labels) or first_match(text, patterns)


def canonical_asphalt_pcr(raw: Optional[str]) -> Optional[str]:
    """
    "NL-PCR Asfalt versie 1.0" -> "NL-PCR Asfalt 1.0"
    "pcr asfalt v1.0"          -> "PCR Asfalt 1.0"
    "Asfalt 2.1"               -> "Asfalt 2.1"

    Other PCRs keep their own name with "PCR"/"versie" stripped.
    """
    if not raw:
        return None

    s = collapse_spaces(raw)
    low = s.lower()
    m = re.search(r"(\d+(?:\.\d+){0,2})", s)
    version = m.group(1) if m else None

    if "nl-pcr" in low and "asfalt" in low:
        name = "NL-PCR Asfalt"
    elif "pcr" in low and "asfalt" in low:
        name = "PCR Asfalt"
    elif "asfalt" in low:
        name = "Asfalt"
    else:
        name = strip_pcr_words(s) or None

    if name and version:
        return f"{name} {version}"
    if name:
        return name
    return f"PCR {version}" if version else None


# ============================================================
# Parser
# ============================================================

class AsphaltEcochainParser(EpdParser):
    """
    Asphalt EPDs generated with Ecochain (Dutch labels, "Milieu-impact SBK
    set N" result tables).
    """

    parser_id = "asphalt_ecochain_v1"
    layout = "asphalt_ecochain"

    def match(self, text: str, meta: Meta = None) -> ParserMatch:
        lower = (text or "").lower()
        score = 0.0
        if "asfalt" in lower:
            score += 0.6
        if "ecochain" in lower:
            score += 0.2
        if "pcr" in lower and "asfalt" in lower:
            score += 0.2
        reason = "asphalt/Ecochain terms found" if score else "no asphalt signals"
        return ParserMatch(score=score, reason=reason)

    def parse_legacy(self, text: str):
        """
        Flat record plus the grouped rows and module declarations it was
        built from.
        """
        text = normalize_preserve_lines(text)
        parsed = ParsedEpd()

        parsed.product_name = _field(text, PRODUCT_LABELS, PRODUCT_PATTERNS)
        parsed.functional_unit = _field(text, UNIT_LABELS, UNIT_PATTERNS)
        parsed.producer_name = _field(text, PRODUCER_LABELS, PRODUCER_PATTERNS)

        publication_raw = _field(text, PUBLICATION_LABELS, PUBLICATION_PATTERNS)
        expiration_raw = _field(text, EXPIRATION_LABELS, EXPIRATION_PATTERNS)
        parsed.publication_date = date_from_text(publication_raw) or date_from_text(text)
        parsed.expiration_date = resolve_expiration_date(
            parsed.publication_date,
            date_from_text(expiration_raw),
        )

        parsed.verifier_name = _field(text, VERIFIER_LABELS, VERIFIER_PATTERNS)

        lca_raw = _field(text, LCA_LABELS, LCA_PATTERNS)
        parsed.lca_method = normalize_lca_method(lca_raw)
        parsed.pcr_version = canonical_asphalt_pcr(_field(text, PCR_LABELS, PCR_PATTERNS))

        db = normalize_databases(_field(text, DATABASE_LABELS, DATABASE_PATTERNS), text)
        parsed.database_name = db.canonical
        parsed.database_nmd_version = db.nmd
        parsed.database_ecoinvent_version = db.ecoinvent

        # Sets are read independently; a document may declare both
        rows, modules, mnd, found = self._read_sets(
            text, [SetType.SBK_SET_1, SetType.SBK_SET_2]
        )

        detected = detect_standard_set(text)
        if len(found) == 2:
            parsed.standard_set = SetType.SBK_BOTH
        elif detected == SetType.UNKNOWN and len(found) == 1:
            parsed.standard_set = found[0]
        else:
            parsed.standard_set = detected

        parsed.impacts = results_to_impacts(rows, LEGACY_STAGES)
        raw_extract = {
            "lcaStandardRaw": collapse_spaces(lca_raw) if lca_raw else None,
            "databaseNmdVersion": db.nmd,
            "databaseEcoinventVersion": db.ecoinvent,
        }
        return parsed, rows, build_module_declarations(modules, mnd), raw_extract

    def parse(self, text: str, meta: Meta = None) -> ParserResult:
        parsed, rows, declarations, raw_extract = self.parse_legacy(text or "")

        normalized = legacy_to_normalized(parsed, raw_extract)
        if rows:
            normalized.results = rows
            normalized.modules_declared = declarations

        logger.debug(
            "asphalt: %d rows, %d impacts, set=%s",
            len(rows),
            len(parsed.impacts),
            parsed.standard_set.value,
        )
        return ParserResult(normalized=normalized, legacy=parsed, parser_id=self.parser_id)
