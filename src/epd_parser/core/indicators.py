# src/epd_parser/core/indicators.py
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from epd_parser.config import load_config

_cfg = load_config()


def _freeze(table: Mapping[str, Dict[str, str]]) -> Mapping[str, Mapping[str, str]]:
    return MappingProxyType({code: MappingProxyType(dict(meta)) for code, meta in table.items()})


# Read-only after import
INDICATORS_SET_1 = _freeze(_cfg.indicators["set_1"])
INDICATORS_SET_2 = _freeze(_cfg.indicators["set_2"])
INDICATORS = MappingProxyType({**INDICATORS_SET_1, **INDICATORS_SET_2})
ALIASES: Mapping[str, str] = MappingProxyType(dict(_cfg.indicators.get("aliases", {})))

# Codes the row tokenizer looks for, longest first so that a short code
# never wins inside a longer one (AP inside ADP-F, EE inside EET).
PARSE_CODES: Tuple[str, ...] = tuple(
    sorted(
        dict.fromkeys([*INDICATORS_SET_1, *INDICATORS_SET_2, *ALIASES]),
        key=len,
        reverse=True,
    )
)

SET_2_ONLY_CODES: Tuple[str, ...] = tuple(
    code for code in INDICATORS_SET_2 if code not in INDICATORS_SET_1
)


def default_unit(code: str) -> str | None:
    """Unit from the indicator table, for rows printed without one."""
    meta = INDICATORS.get(ALIASES.get(code, code))
    return meta["default_unit"] if meta else None


def ordered_codes(codes) -> Tuple[str, ...]:
    """Deduplicate and sort indicator codes longest-first."""
    return tuple(sorted(dict.fromkeys(c.upper() for c in codes), key=len, reverse=True))


def set2_marker_pattern() -> re.Pattern:
    """
    Pattern matching any set-2-only code as a standalone token.

    Two-letter codes (PM, IR) are matched case-sensitively; in lower case
    they collide with ordinary words and titles.
    """
    long_codes = [re.escape(c) for c in SET_2_ONLY_CODES if len(c) > 2]
    short_codes = [re.escape(c) for c in SET_2_ONLY_CODES if len(c) <= 2]
    parts = [rf"(?i:{'|'.join(long_codes)})"] if long_codes else []
    if short_codes:
        parts.append("|".join(short_codes))
    return re.compile(rf"(?<![\w-])(?:{'|'.join(parts)})(?![\w-])")
