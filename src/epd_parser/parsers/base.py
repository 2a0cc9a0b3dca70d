# src/epd_parser/parsers/base.py
from __future__ import annotations

from typing import List, Mapping, Optional

from epd_parser.core.types import ParserMatch, ParserResult, ResultRow, SetType
from epd_parser.extractors.impact_table import parse_impact_table
from epd_parser.normalization.adapter import reconcile_eci_mki

Meta = Optional[Mapping[str, Optional[str]]]


class EpdParser:
    """
    One document family.

    Subclasses set `parser_id` and `layout` (a key of layouts.yaml) and
    implement `match` and `parse`. Both receive the raw document text and
    an optional metadata map.
    """

    parser_id: str = ""
    layout: str = ""

    def match(self, text: str, meta: Meta = None) -> ParserMatch:
        raise NotImplementedError

    def parse(self, text: str, meta: Meta = None) -> ParserResult:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.parser_id!r})"

    # --------------------------------------------------------
    # Shared table handling
    # --------------------------------------------------------

    def _read_sets(
        self,
        text: str,
        sets: List[SetType],
        *,
        allow_fallback_section: bool = False,
        row_set_type: Optional[SetType] = None,
    ):
        """
        Parse the impact table of every requested set.

        Returns (rows, modules, mnd_modules, sets_with_rows). ECI/MKI are
        reconciled per set.
        """
        rows: List[ResultRow] = []
        modules: List[str] = []
        mnd: List[str] = []
        found: List[SetType] = []

        for set_type in sets:
            table = parse_impact_table(
                text,
                set_type,
                self.layout,
                allow_fallback_section=allow_fallback_section,
                row_set_type=row_set_type,
            )
            if not table.rows:
                continue

            found.append(set_type)
            rows.extend(reconcile_eci_mki(table.rows))
            modules.extend(m for m in table.modules if m not in modules)
            mnd.extend(m for m in table.mnd_modules if m not in mnd)

        return rows, modules, mnd, found
