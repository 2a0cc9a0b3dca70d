# src/epd_parser/cli/run.py

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from epd_parser.core.types import ParserResult
from epd_parser.pipeline.pipeline import run_on_file

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Parse an EPD (PDF or extracted text) into a structured record."
    )
    parser.add_argument(
        "input",
        help="Path to the EPD PDF or a .txt file with its extracted text.",
    )
    parser.add_argument(
        "--output",
        "-o",
        help="Where to save the result as JSON (default: print to stdout).",
    )
    parser.add_argument(
        "--legacy",
        action="store_true",
        help="Emit the legacy flat record instead of the normalized one.",
    )
    return parser.parse_args(argv)


def result_to_dict(result: ParserResult, legacy: bool = False) -> Dict[str, Any]:
    """
    Serialize a ParserResult to a JSON-friendly dict.
    """
    record = result.legacy if legacy else result.normalized
    return {
        "parserId": result.parser_id,
        "record": record.to_dict() if record is not None else None,
    }


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    in_path = Path(args.input)
    if not in_path.exists():
        logger.error("Input file not found: %s", in_path)
        return 1

    logger.info("Parsing EPD '%s'", in_path)
    result = run_on_file(str(in_path))
    data = result_to_dict(result, legacy=args.legacy)

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)

        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info("Saved EPD record to %s", out_path)
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
