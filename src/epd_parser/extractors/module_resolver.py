# src/epd_parser/extractors/module_resolver.py
from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from epd_parser.core.types import ModuleDeclaration, RowRecord
from epd_parser.utils.numeric_parser import is_mnd, parse_number_token

logger = logging.getLogger(__name__)

# A1-A3 before A1 so the aggregate column is not read as "A1"
STAGE_RE = re.compile(r"\b(A1-?A3|A1|A2|A3|A4|A5|B\d|C[1-4]|D|Totaal|Total)\b", re.IGNORECASE)

MIN_HEADER_TOKENS = 3

# Used when neither a header nor a 9+ value row is present
FALLBACK_MODULES = ["A1", "A2", "A3", "A1-A3", "C2", "C3", "C4", "D", "Total"]


def canonical_stage(token: str) -> str:
    upper = token.upper()
    if upper in ("TOTAAL", "TOTAL"):
        return "Total"
    if upper == "A1A3":
        return "A1-A3"
    return upper


def collect_module_tokens(line: str) -> List[str]:
    return [m.group(1) for m in STAGE_RE.finditer(line)]


def detect_module_header(lines: Sequence[str]) -> List[str]:
    """
    Stage sequence of the first header line (3+ stage tokens).

    Headers broken over two lines are merged with the next line. Order is
    kept, duplicates dropped.
    """
    for i, line in enumerate(lines):
        tokens = collect_module_tokens(line)
        if len(tokens) < MIN_HEADER_TOKENS:
            continue

        if i + 1 < len(lines):
            tokens += collect_module_tokens(lines[i + 1])

        unique: List[str] = []
        for tok in tokens:
            stage = canonical_stage(tok)
            if stage not in unique:
                unique.append(stage)
        return unique
    return []


def resolve_modules(
    lines: Sequence[str],
    records: Sequence[RowRecord],
    default: Sequence[str],
    *,
    fallback: Sequence[str] = FALLBACK_MODULES,
    fallback_min_tokens: int = 9,
) -> List[str]:
    """
    Column order of a results table.

    Priority:
      1) header row in the section
      2) fixed 9-column sequence when some row has 9+ values
      3) the layout's default sequence
    """
    header = detect_module_header(lines)
    if header:
        return header

    if any(len(r.tokens) >= fallback_min_tokens for r in records):
        logger.debug("module_resolver: no header, using %d-column fallback", len(fallback))
        return list(fallback)

    logger.debug("module_resolver: no header, using layout default %s", list(default))
    return list(default)


def assign_stage_values(
    tokens: Sequence[str],
    modules: Sequence[str],
) -> Tuple[Dict[str, Optional[float]], List[str]]:
    """
    Map tokens onto stages by position.

    MND gives None and reports the stage as not declared. Stages without a
    token, or with a token that is not a finite number, are left out.
    """
    values: Dict[str, Optional[float]] = {}
    mnd: List[str] = []

    for stage, token in zip(modules, tokens):
        if is_mnd(token):
            values[stage] = None
            mnd.append(stage)
            continue

        value = parse_number_token(token)
        if value is not None:
            values[stage] = value

    if len(tokens) > len(modules):
        logger.debug(
            "module_resolver: %d tokens for %d stages, extra ignored",
            len(tokens),
            len(modules),
        )
    return values, mnd


def build_module_declarations(
    modules: Iterable[str],
    mnd_modules: Iterable[str] = (),
) -> List[ModuleDeclaration]:
    mnd = set(mnd_modules)
    out: List[ModuleDeclaration] = []
    seen = set()
    for module in modules:
        if module in seen:
            continue
        seen.add(module)
        if module in mnd:
            out.append(ModuleDeclaration(module=module, declared=False, mnd=True))
        else:
            out.append(ModuleDeclaration(module=module, declared=True))
    return out
