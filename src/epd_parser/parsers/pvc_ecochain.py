# src/epd_parser/parsers/pvc_ecochain.py
from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

from epd_parser.core.types import NormalizedEpd, ParserMatch, ParserResult, SetType
from epd_parser.extractors.fields import (
    detect_set2_indicators,
    detect_standard_set,
    normalize_databases,
    normalize_declared_unit,
    normalize_lca_standard,
    normalize_pcr_info,
    parse_verified,
    resolve_expiration_date,
)
from epd_parser.extractors.module_resolver import build_module_declarations
from epd_parser.normalization.adapter import (
    LEGACY_STAGES,
    normalized_to_legacy,
    results_to_impacts,
)
from epd_parser.parsers.base import EpdParser, Meta
from epd_parser.utils.text_utils import (
    date_from_text,
    first_match,
    get_line_value,
    normalize_preserve_lines,
    value_after_label,
)

logger = logging.getLogger(__name__)

_ECOCHAIN_VERSION_RE = re.compile(r"ecochain\s+v?\d+\.", re.IGNORECASE)

PRODUCT_PATTERNS = [re.compile(r"\bproduct\b[:\s]*([^\n]{2,200})", re.IGNORECASE)]
UNIT_PATTERNS = [
    re.compile(r"^unit[:\s]*([^\n]+)", re.IGNORECASE | re.MULTILINE),
    re.compile(r"functional\s*unit[:\s]*([^\n]+)", re.IGNORECASE),
]
MANUFACTURER_PATTERNS = [
    re.compile(r"manufacturer[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"producent[:\s]*([^\n]+)", re.IGNORECASE),
]
ADDRESS_PATTERNS = [re.compile(r"address[:\s]*([^\n]+)", re.IGNORECASE)]
ISSUE_PATTERNS = [
    re.compile(r"issue\s*date[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"publication\s*date[:\s]*([^\n]+)", re.IGNORECASE),
]
VALIDITY_PATTERNS = [
    re.compile(r"end\s*of\s*validity[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"expiration\s*date[:\s]*([^\n]+)", re.IGNORECASE),
]
LCA_PATTERNS = [
    re.compile(r"lca\s*standard[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"bepalingsmethode[:\s]*([^\n]+)", re.IGNORECASE),
]
PCR_PATTERNS = [re.compile(r"\bpcr\b[:\s]*([^\n]+)", re.IGNORECASE)]
VERIFIED_PATTERNS = [re.compile(r"verified[:\s]*([^\n]+)", re.IGNORECASE)]
DATABASE_PATTERNS = [
    re.compile(r"standa(?:a)?rd\s*database[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"database[:\s]*([^\n]+)", re.IGNORECASE),
]

# "Verifier" is often split by the PDF text layer ("Veri er", "V e r i f i e r")
VERIFIER_PATTERNS = [
    re.compile(r"verifier[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"verificateur[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"verifier[:\s]*\n\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"veri\s*er[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"veri\s*er[:\s]*\n\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"v\s*e\s*r\s*i\s*f\s*i\s*e\s*r[:\s]*([^\n]+)", re.IGNORECASE),
    re.compile(r"v\s*e\s*r\s*i\s*f\s*i\s*e\s*r[:\s]*\n\s*([^\n]+)", re.IGNORECASE),
]


def extract_manufacturer(text: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Manufacturer name (text before " - ") and address.
    """
    manufacturer = (
        get_line_value(text, ["Manufacturer", "Producent", "Producer"])
        or first_match(text, MANUFACTURER_PATTERNS)
    )
    address = get_line_value(text, ["Address", "Adres"]) or first_match(text, ADDRESS_PATTERNS)

    if manufacturer:
        manufacturer = manufacturer.split(" - ")[0].strip() or manufacturer
    return manufacturer, address


def extract_verifier(text: str) -> Optional[str]:
    return (
        get_line_value(text, ["Verifier", "Verificateur", "Toetser"])
        or first_match(text, VERIFIER_PATTERNS)
        or value_after_label(text, "Verifier")
        or value_after_label(text, "Veri er")
        or value_after_label(text, "Verificateur")
    )


class PvcEcochainParser(EpdParser):
    """
    PVC pipe EPDs generated with Ecochain v3 (English labels).
    """

    parser_id = "pvc_ecochain_v1"
    layout = "pvc_ecochain"

    def match(self, text: str, meta: Meta = None) -> ParserMatch:
        lower = (text or "").lower()
        score = 0.0
        if _ECOCHAIN_VERSION_RE.search(lower):
            score += 0.4
        if "u3 pipe" in lower or "pvc" in lower:
            score += 0.5
        if "results" in lower and "environmental impact" in lower:
            score += 0.1
        reason = "Ecochain PVC pipe layout" if score else "no PVC/Ecochain signals"
        return ParserMatch(score=score, reason=reason)

    @staticmethod
    def _sets_to_read(derived: SetType):
        if derived == SetType.SBK_BOTH:
            return [SetType.SBK_SET_1, SetType.SBK_SET_2]
        if derived == SetType.SBK_SET_2:
            return [SetType.SBK_SET_2]
        return [SetType.SBK_SET_1]

    def parse(self, text: str, meta: Meta = None) -> ParserResult:
        text = normalize_preserve_lines(text or "")

        product = get_line_value(text, ["Product", "Product:"]) or first_match(text, PRODUCT_PATTERNS)
        unit_raw = get_line_value(text, ["Unit", "Eenheid", "Functional unit"]) or first_match(text, UNIT_PATTERNS)
        manufacturer, address = extract_manufacturer(text)

        issue_raw = (
            get_line_value(text, ["Issue date", "Datum van publicatie", "Publication date"])
            or first_match(text, ISSUE_PATTERNS)
        )
        valid_raw = (
            get_line_value(text, ["End of validity", "Expiration date", "Einde geldigheid"])
            or first_match(text, VALIDITY_PATTERNS)
        )
        issue_date = date_from_text(issue_raw) or date_from_text(text)
        valid_until = resolve_expiration_date(issue_date, date_from_text(valid_raw))

        lca_raw = get_line_value(text, ["LCA standard", "LCA-methode", "Bepalingsmethode"]) or first_match(text, LCA_PATTERNS)
        pcr_raw = get_line_value(text, ["PCR"]) or first_match(text, PCR_PATTERNS)

        verified_raw = (
            get_line_value(text, ["Verified", "Verified by", "Geverifieerd"])
            or first_match(text, VERIFIED_PATTERNS)
        )

        db_raw = (
            get_line_value(text, ["Standard database", "Standaard database", "Database"])
            or first_match(text, DATABASE_PATTERNS)
        )
        db = normalize_databases(db_raw, text)

        # Set 2 may only show through its indicator codes
        declared = detect_standard_set(text)
        derived = declared
        if declared == SetType.UNKNOWN and detect_set2_indicators(text):
            derived = SetType.SBK_SET_2

        # Set-2 tables are often printed without an "SBK set 2" heading
        use_fallback = declared == SetType.UNKNOWN or derived == SetType.SBK_SET_2
        rows, modules, mnd, _ = self._read_sets(
            text,
            self._sets_to_read(derived),
            allow_fallback_section=use_fallback,
            row_set_type=derived if use_fallback else None,
        )

        normalized = NormalizedEpd(
            product_name=product,
            declared_unit=normalize_declared_unit(unit_raw),
            manufacturer=manufacturer or address,
            issue_date=issue_date,
            valid_until=valid_until,
            pcr=normalize_pcr_info(pcr_raw),
            lca_standard=normalize_lca_standard(lca_raw),
            verified=parse_verified(verified_raw),
            verifier=extract_verifier(text),
            database=db.canonical,
            modules_declared=build_module_declarations(modules, mnd),
            results=rows,
            impacts=results_to_impacts(rows, LEGACY_STAGES),
            standard_set=derived,
            raw_extract={
                "address": address,
                "databaseNmdVersion": db.nmd,
                "databaseEcoinventVersion": db.ecoinvent,
            },
        )

        legacy = normalized_to_legacy(normalized)
        logger.debug(
            "pvc: %d rows over %s, set=%s (declared %s)",
            len(rows),
            modules,
            derived.value,
            declared.value,
        )
        return ParserResult(normalized=normalized, legacy=legacy, parser_id=self.parser_id)
