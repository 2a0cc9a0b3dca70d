from __future__ import annotations

import logging
import re
from pathlib import Path

import pdfplumber

logger = logging.getLogger(__name__)

# C0 controls except tab and newline, DEL, lone UTF-16 surrogates
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f\ud800-\udfff]")


def sanitize_pdf_text(text: str) -> str:
    """Drop control characters the PDF text layer leaves behind."""
    return _CONTROL_RE.sub("", text.replace("\r\n", "\n").replace("\r", "\n"))


def extract_text(pdf_path: str) -> str:
    """
    Text of all PDF pages, pages separated by a blank line.

    Line breaks are kept; the parser depends on them.
    """
    path = Path(pdf_path)

    if not path.exists():
        logger.error("PDF not found: %s", pdf_path)
        return ""

    pages = []
    try:
        with pdfplumber.open(str(path)) as pdf:
            for i, page in enumerate(pdf.pages, start=1):
                try:
                    text = page.extract_text() or ""
                except Exception as exc:
                    logger.warning("Failed to extract page %s: %s", i, exc)
                    text = ""
                pages.append(text)
    except Exception as exc:
        logger.error("Failed to open PDF %s: %s", pdf_path, exc)
        return ""

    return sanitize_pdf_text("\n\n".join(pages))
