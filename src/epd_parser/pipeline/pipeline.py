# src/epd_parser/pipeline/pipeline.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from epd_parser.core.types import NormalizedEpd, ParsedEpd, ParserResult
from epd_parser.normalization.adapter import normalized_to_legacy
from epd_parser.parsers.base import Meta
from epd_parser.pipeline.registry import parse_with_registry
from epd_parser.utils.pdf_reader import extract_text

logger = logging.getLogger(__name__)


# ----------------------------------------------------------
# Text entry points
# ----------------------------------------------------------

def parse_epd_result(text: Optional[str], meta: Meta = None) -> ParserResult:
    """
    Full result: normalized record, legacy record and parser id.
    """
    result = parse_with_registry(text, meta)
    if result.legacy is None:
        result.legacy = normalized_to_legacy(result.normalized)
    return result


def parse_epd_normalized(text: Optional[str], meta: Meta = None) -> NormalizedEpd:
    return parse_epd_result(text, meta).normalized


def parse_epd(text: Optional[str], meta: Meta = None) -> ParsedEpd:
    """Legacy flat record consumed by the save/update API."""
    return parse_epd_result(text, meta).legacy


# ----------------------------------------------------------
# Files
# ----------------------------------------------------------

def read_document(path: Path) -> str:
    """Linearized text of a PDF, or the contents of a text file."""
    if path.suffix.lower() == ".pdf":
        return extract_text(str(path))
    return path.read_text(encoding="utf-8", errors="replace")


def run_on_file(file_path: str, meta: Meta = None) -> ParserResult:
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(file_path)

    text = read_document(path)
    if not text.strip():
        logger.warning("pipeline: no text extracted from %s", path)

    result = parse_epd_result(text, meta)
    logger.info(
        "pipeline: %s -> %s, %d result rows",
        path.name,
        result.parser_id,
        len(result.normalized.results),
    )
    return result
