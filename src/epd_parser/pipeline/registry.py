# src/epd_parser/pipeline/registry.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from epd_parser.core.types import NormalizedEpd, ParserMatch, ParserResult
from epd_parser.parsers.asphalt_ecochain import AsphaltEcochainParser
from epd_parser.parsers.base import EpdParser, Meta
from epd_parser.parsers.pvc_ecochain import PvcEcochainParser

logger = logging.getLogger(__name__)


# ----------------------------------------------------------
# Registered layouts
#
# Order matters: on equal scores the first parser wins.
# Asphalt is the fallback when nothing scores above zero.
# ----------------------------------------------------------

DEFAULT_PARSER: EpdParser = AsphaltEcochainParser()
PARSERS: Tuple[EpdParser, ...] = (PvcEcochainParser(), DEFAULT_PARSER)


@dataclass
class Selection:
    parser: EpdParser
    scores: List[Tuple[EpdParser, ParserMatch]] = field(default_factory=list)

    @property
    def trace(self) -> str:
        return format_score_trace(self.scores)


def format_score_trace(scores: Sequence[Tuple[EpdParser, ParserMatch]]) -> str:
    """
    "pvc_ecochain_v1=0.30:reason | asphalt_ecochain_v1=0.60:reason"
    """
    return " | ".join(
        f"{parser.parser_id}={match.score:.2f}:{match.reason or 'n/a'}"
        for parser, match in scores
    )


def _safe_match(parser: EpdParser, text: str, meta: Meta) -> ParserMatch:
    try:
        return parser.match(text, meta)
    except Exception as exc:
        logger.warning("registry: match() failed for %s: %s", parser.parser_id, exc)
        return ParserMatch(score=0.0, reason=f"match error: {exc}")


def select_parser(
    text: Optional[str],
    parsers: Optional[Sequence[EpdParser]] = None,
    default: Optional[EpdParser] = None,
    meta: Meta = None,
) -> Selection:
    """
    Score every parser and pick the best one.

    Rules:
      1. highest score wins
      2. equal scores: first registered wins
      3. every score zero: the default parser
    """
    candidates = list(PARSERS if parsers is None else parsers)
    fallback = default or DEFAULT_PARSER
    text = text or ""

    scores = [(parser, _safe_match(parser, text, meta)) for parser in candidates]

    best: Optional[Tuple[EpdParser, ParserMatch]] = None
    for parser, match in scores:
        if best is None or match.score > best[1].score:
            best = (parser, match)

    if best is None or best[1].score <= 0:
        return Selection(parser=fallback, scores=scores)
    return Selection(parser=best[0], scores=scores)


def parse_with_registry(
    text: Optional[str],
    meta: Meta = None,
    parsers: Optional[Sequence[EpdParser]] = None,
    default: Optional[EpdParser] = None,
) -> ParserResult:
    """
    Select a parser, run it and record the choice in `raw_extract`.

    Never raises: a parser failure yields an empty record that still
    carries the score trace and the error.
    """
    text = text or ""
    selection = select_parser(text, parsers=parsers, default=default, meta=meta)
    chosen = selection.parser
    trace = selection.trace

    logger.info("registry: selected %s. Scores: %s", chosen.parser_id, trace)

    try:
        result = chosen.parse(text, meta)
    except Exception as exc:
        logger.exception("registry: %s failed to parse document", chosen.parser_id)
        result = ParserResult(
            normalized=NormalizedEpd(raw_extract={"error": f"{type(exc).__name__}: {exc}"}),
        )

    normalized = result.normalized
    normalized.raw_extract = {
        **(normalized.raw_extract or {}),
        "parserId": chosen.parser_id,
        "parserScores": trace,
    }
    result.parser_id = chosen.parser_id

    lca = normalized.lca_standard
    if lca.raw and not lca.version:
        logger.warning("registry: LCA standard version not recognised: %s", lca.raw)

    return result
