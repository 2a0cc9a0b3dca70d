# src/epd_parser/normalization/adapter.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from epd_parser.core.types import (
    ImpactRecord,
    ModuleDeclaration,
    NormalizedEpd,
    ParsedEpd,
    ResultRow,
)
from epd_parser.extractors.fields import normalize_lca_standard, normalize_pcr_info

logger = logging.getLogger(__name__)

# Stages the legacy flat record carries
LEGACY_STAGES = ("A1", "A2", "A3", "A1-A3", "D")


# ============================================================
# Flat <-> grouped
# ============================================================

def impacts_to_results(impacts: Iterable[ImpactRecord]) -> List[ResultRow]:
    """
    Group flat impact records per (indicator, set).

    Groups keep first-seen order; the first non-empty unit of a group wins.
    """
    grouped: Dict[Tuple[str, Any], ResultRow] = {}

    for impact in impacts:
        key = (impact.indicator, impact.set_type)
        row = grouped.get(key)
        if row is None:
            row = ResultRow(indicator=impact.indicator, set_type=impact.set_type)
            grouped[key] = row
        row.values[impact.stage] = impact.value
        if not row.unit and impact.unit:
            row.unit = impact.unit

    return list(grouped.values())


def results_to_impacts(
    results: Iterable[ResultRow],
    stages: Optional[Sequence[str]] = None,
) -> List[ImpactRecord]:
    """
    Expand grouped rows into one flat record per stage with a value.

    MND stages (None) have no flat representation and are skipped.
    `stages` restricts and orders the output stages.
    """
    out: List[ImpactRecord] = []

    for row in results:
        keys = stages if stages is not None else list(row.values)
        for stage in keys:
            value = row.values.get(stage)
            if value is None:
                continue
            out.append(
                ImpactRecord(
                    indicator=row.indicator,
                    set_type=row.set_type,
                    stage=stage,
                    value=value,
                    unit=row.unit,
                )
            )
    return out


def modules_from_impacts(impacts: Iterable[ImpactRecord]) -> List[ModuleDeclaration]:
    seen: List[str] = []
    for impact in impacts:
        if impact.stage not in seen:
            seen.append(impact.stage)
    return [ModuleDeclaration(module=m, declared=True) for m in seen]


# ============================================================
# ECI <-> MKI
# ============================================================

def reconcile_eci_mki(rows: Sequence[ResultRow]) -> List[ResultRow]:
    """
    Make MKI and ECI carry the same numbers within one set.

      - an ECI row with values becomes the MKI row; a separate MKI row
        is dropped
      - otherwise an MKI row is also emitted as ECI

    The reconciled row is placed first.
    """
    rows = list(rows)
    eci = next((r for r in rows if r.indicator == "ECI"), None)
    mki = next((r for r in rows if r.indicator == "MKI"), None)

    if eci is not None and eci.has_values():
        if mki is not None:
            logger.debug("adapter: ECI row replaces MKI row for %s", eci.set_type.value)
        rest = [r for r in rows if r.indicator not in ("ECI", "MKI")]
        promoted = ResultRow(
            indicator="MKI",
            set_type=eci.set_type,
            values=dict(eci.values),
            unit=eci.unit,
        )
        return [promoted, *rest]

    if mki is not None:
        rest = [r for r in rows if r.indicator != "ECI"]
        alias = ResultRow(
            indicator="ECI",
            set_type=mki.set_type,
            values=dict(mki.values),
            unit=mki.unit,
        )
        return [alias, *rest]

    return rows


# ============================================================
# Legacy <-> normalized
# ============================================================

def legacy_to_normalized(
    parsed: ParsedEpd,
    raw_extract: Optional[Mapping[str, Any]] = None,
) -> NormalizedEpd:
    extract = dict(raw_extract or {})
    lca_raw = extract.get("lcaStandardRaw") or parsed.lca_method

    return NormalizedEpd(
        product_name=parsed.product_name,
        declared_unit=parsed.functional_unit,
        manufacturer=parsed.producer_name,
        issue_date=parsed.publication_date,
        valid_until=parsed.expiration_date,
        pcr=normalize_pcr_info(parsed.pcr_version),
        lca_standard=normalize_lca_standard(lca_raw),
        verified=None,
        verifier=parsed.verifier_name,
        database=parsed.database_name,
        modules_declared=modules_from_impacts(parsed.impacts),
        results=impacts_to_results(parsed.impacts),
        impacts=list(parsed.impacts),
        standard_set=parsed.standard_set,
        raw_extract=extract,
    )


def _format_lca_method(normalized: NormalizedEpd) -> Optional[str]:
    lca = normalized.lca_standard
    if lca.version:
        return f"{lca.name} {lca.version}"
    return lca.raw


def _format_pcr(normalized: NormalizedEpd) -> Optional[str]:
    pcr = normalized.pcr
    if pcr is None:
        return None
    return f"{pcr.name} {pcr.version}" if pcr.version else pcr.name


def normalized_to_legacy(normalized: NormalizedEpd) -> ParsedEpd:
    """
    Flat record for the save API.

    Impacts are restricted to the legacy stages; database versions come
    from the diagnostic map.
    """
    extract = normalized.raw_extract or {}
    impacts = normalized.impacts or results_to_impacts(normalized.results, LEGACY_STAGES)

    return ParsedEpd(
        product_name=normalized.product_name,
        functional_unit=normalized.declared_unit,
        producer_name=normalized.manufacturer,
        lca_method=_format_lca_method(normalized),
        pcr_version=_format_pcr(normalized),
        database_name=normalized.database,
        database_nmd_version=extract.get("databaseNmdVersion"),
        database_ecoinvent_version=extract.get("databaseEcoinventVersion"),
        publication_date=normalized.issue_date,
        expiration_date=normalized.valid_until,
        verifier_name=normalized.verifier,
        standard_set=normalized.standard_set,
        impacts=list(impacts),
    )
