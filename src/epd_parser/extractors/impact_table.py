# src/epd_parser/extractors/impact_table.py
from __future__ import annotations

import logging
from typing import Iterable, Optional

from epd_parser.config import load_config
from epd_parser.core.indicators import default_unit
from epd_parser.core.types import ImpactTable, ResultRow, SetType
from epd_parser.extractors.module_resolver import (
    FALLBACK_MODULES,
    assign_stage_values,
    resolve_modules,
)
from epd_parser.extractors.results_section import (
    DEFAULT_GENERIC_HEADING,
    locate_fallback_section,
    locate_results_section,
)
from epd_parser.extractors.row_tokenizer import tokenize_section
from epd_parser.utils.text_utils import normalize_preserve_lines

logger = logging.getLogger(__name__)


def _section_for(
    text: str,
    set_type: SetType,
    settings: dict,
    allow_fallback_section: bool,
) -> Optional[str]:
    set_no = 2 if set_type == SetType.SBK_SET_2 else 1
    max_length = int(settings.get("max_section_length", 14000))
    footers = settings.get("footer_markers") or []

    section = locate_results_section(
        text,
        set_no,
        headings=settings.get("section_headings") or [],
        footer_markers=footers,
        max_length=max_length,
        generic_heading=settings.get("generic_heading") or DEFAULT_GENERIC_HEADING,
    )
    if section is None and allow_fallback_section:
        section = locate_fallback_section(
            text,
            set_type,
            headings=settings.get("fallback_headings") or [],
            set2_end_markers=settings.get("fallback_set2_end_markers") or [],
            footer_markers=footers,
            max_length=max_length,
        )
    return section


def parse_impact_table(
    text: str,
    set_type: SetType,
    layout: str,
    *,
    codes: Optional[Iterable[str]] = None,
    allow_fallback_section: bool = False,
    row_set_type: Optional[SetType] = None,
) -> ImpactTable:
    """
    Impact rows of one declaration set, read with one layout's settings.

    `set_type` picks the section; `row_set_type` (default: `set_type`) is
    the set written on the rows, which differs when a fallback section is
    read for a document that never names its set.

    Only the first row per indicator is kept.
    """
    settings = load_config().layout(layout)
    normalized = normalize_preserve_lines(text)
    label = row_set_type or set_type

    section = _section_for(normalized, set_type, settings, allow_fallback_section)
    if section is None:
        return ImpactTable(set_type=label)

    lines = [ln.strip() for ln in section.split("\n") if ln.strip()]
    records = tokenize_section(
        section,
        codes,
        footer_markers=settings.get("footer_markers") or [],
        stop_markers=settings.get("stop_markers") or [],
    )

    modules = resolve_modules(
        lines,
        records,
        settings.get("default_modules") or [],
        fallback=settings.get("fallback_modules") or FALLBACK_MODULES,
        fallback_min_tokens=int(settings.get("fallback_min_tokens", 9)),
    )

    table = ImpactTable(set_type=label, modules=modules, section_found=True)
    seen = set()

    for record in records:
        if record.indicator in seen:
            logger.debug(
                "impact_table: duplicate %s row in %s dropped",
                record.indicator,
                label.value,
            )
            continue

        values, mnd = assign_stage_values(record.tokens, modules)
        if not values:
            continue

        seen.add(record.indicator)
        for stage in mnd:
            if stage not in table.mnd_modules:
                table.mnd_modules.append(stage)

        table.rows.append(
            ResultRow(
                indicator=record.indicator,
                set_type=label,
                values=values,
                unit=record.unit or default_unit(record.indicator),
            )
        )

    logger.debug(
        "impact_table: %s (%s) -> %d rows over %s",
        label.value,
        layout,
        len(table.rows),
        modules,
    )
    return table
