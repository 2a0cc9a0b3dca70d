# src/epd_parser/config.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from dotenv import load_dotenv
import json
import yaml
import logging
import os

# Load .env as early as possible
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
SCHEMA_DIR = BASE_DIR / "schemas"


def load_json(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_yaml(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


class EPDConfig:
    def __init__(self):
        self.indicators = load_json(SCHEMA_DIR / "indicators.json")
        self.layouts = load_yaml(SCHEMA_DIR / "layouts.yaml")

    def layout(self, name: str) -> dict:
        """Settings for one layout, merged over the shared defaults."""
        shared = {k: v for k, v in self.layouts.items() if not isinstance(v, dict)}
        specific = self.layouts.get(name) or {}
        return {**shared, **specific}


@lru_cache(maxsize=1)
def load_config() -> EPDConfig:
    return EPDConfig()


def setup_logging(level: str | None = None) -> None:
    """
    Configure root logger. Safe to call multiple times.
    """
    level = level or os.getenv("EPD_PARSER_LOG_LEVEL", "INFO")
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


# Run once automatically
setup_logging()
