# src/epd_parser/core/types.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SetType(str, Enum):
    """Declaration scheme a value was reported under."""
    UNKNOWN = "UNKNOWN"
    SBK_SET_1 = "SBK_SET_1"
    SBK_SET_2 = "SBK_SET_2"
    SBK_BOTH = "SBK_BOTH"


@dataclass
class ImpactRecord:
    """
    Legacy flat impact value: one indicator, one set, one stage.
    """
    indicator: str
    set_type: SetType
    stage: str
    value: float
    unit: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "indicator": self.indicator,
            "setType": self.set_type.value,
            "stage": self.stage,
            "value": self.value,
        }
        if self.unit:
            out["unit"] = self.unit
        return out


@dataclass
class ResultRow:
    """
    One indicator for one set, values keyed by life-cycle stage.

    A stage mapped to None was declared MND; a stage missing from
    `values` was never seen.
    """
    indicator: str
    set_type: SetType
    values: Dict[str, Optional[float]] = field(default_factory=dict)
    unit: Optional[str] = None

    def has_values(self) -> bool:
        return any(v is not None for v in self.values.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "indicator": self.indicator,
            "unit": self.unit,
            "setType": self.set_type.value,
            "values": dict(self.values),
        }


@dataclass
class ModuleDeclaration:
    module: str
    declared: bool
    mnd: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"module": self.module, "declared": self.declared}
        if self.mnd is not None:
            out["mnd"] = self.mnd
        return out


@dataclass
class PcrInfo:
    name: str
    version: Optional[str] = None


@dataclass
class LcaStandard:
    name: str = "NMD Bepalingsmethode"
    version: Optional[str] = None  # "1.0", "1.1" or "1.2"
    raw: Optional[str] = None
    edition_year: Optional[str] = None


@dataclass
class NormalizedEpd:
    """Grouped record produced by every layout parser."""
    product_name: Optional[str] = None
    declared_unit: Optional[str] = None
    manufacturer: Optional[str] = None
    issue_date: Optional[str] = None
    valid_until: Optional[str] = None
    pcr: Optional[PcrInfo] = None
    lca_standard: LcaStandard = field(default_factory=LcaStandard)
    verified: Optional[bool] = None
    verifier: Optional[str] = None
    database: Optional[str] = None
    modules_declared: List[ModuleDeclaration] = field(default_factory=list)
    results: List[ResultRow] = field(default_factory=list)
    impacts: List[ImpactRecord] = field(default_factory=list)
    standard_set: SetType = SetType.UNKNOWN
    raw_extract: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productName": self.product_name,
            "declaredUnit": self.declared_unit,
            "manufacturer": self.manufacturer,
            "issueDate": self.issue_date,
            "validUntil": self.valid_until,
            "pcr": (
                {"name": self.pcr.name, "version": self.pcr.version}
                if self.pcr else None
            ),
            "lcaStandard": {
                "name": self.lca_standard.name,
                "version": self.lca_standard.version,
                "raw": self.lca_standard.raw,
                "editionYear": self.lca_standard.edition_year,
            },
            "verified": self.verified,
            "verifier": self.verifier,
            "database": self.database,
            "modulesDeclared": [m.to_dict() for m in self.modules_declared],
            "results": [r.to_dict() for r in self.results],
            "impacts": [i.to_dict() for i in self.impacts],
            "standardSet": self.standard_set.value,
            "rawExtract": dict(self.raw_extract),
        }


@dataclass
class ParsedEpd:
    """
    Legacy flat shape consumed by the save/update API.
    """
    product_name: Optional[str] = None
    functional_unit: Optional[str] = None
    producer_name: Optional[str] = None
    lca_method: Optional[str] = None
    pcr_version: Optional[str] = None
    database_name: Optional[str] = None
    database_nmd_version: Optional[str] = None
    database_ecoinvent_version: Optional[str] = None
    publication_date: Optional[str] = None
    expiration_date: Optional[str] = None
    verifier_name: Optional[str] = None
    standard_set: SetType = SetType.UNKNOWN
    impacts: List[ImpactRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productName": self.product_name,
            "functionalUnit": self.functional_unit,
            "producerName": self.producer_name,
            "lcaMethod": self.lca_method,
            "pcrVersion": self.pcr_version,
            "databaseName": self.database_name,
            "databaseNmdVersion": self.database_nmd_version,
            "databaseEcoinventVersion": self.database_ecoinvent_version,
            "publicationDate": self.publication_date,
            "expirationDate": self.expiration_date,
            "verifierName": self.verifier_name,
            "standardSet": self.standard_set.value,
            "impacts": [i.to_dict() for i in self.impacts],
        }


@dataclass
class ParserMatch:
    score: float
    reason: Optional[str] = None

    def __post_init__(self) -> None:
        # Clamp to [0, 1]
        self.score = max(0.0, min(1.0, float(self.score)))


@dataclass
class ParserResult:
    normalized: NormalizedEpd
    legacy: Optional[ParsedEpd] = None
    parser_id: Optional[str] = None


@dataclass
class RowRecord:
    """Tokenizer output for one indicator row."""
    indicator: str
    unit: str
    tokens: List[str]


@dataclass
class ImpactTable:
    set_type: SetType
    modules: List[str] = field(default_factory=list)
    rows: List[ResultRow] = field(default_factory=list)
    mnd_modules: List[str] = field(default_factory=list)
    section_found: bool = False
