"""
Barcode / QR code recovery from a vision-model reply.

The model is asked to answer with the code only, but replies still come
back with prose around it. Strategies run from most to least specific.
"""

import re
from typing import Callable, Optional, Tuple

from pydantic import BaseModel

CONFIDENCE_FOUND = 90

_EAN_UPC_RE = re.compile(r"\d{8,14}")
_DIGIT_RUN_RE = re.compile(r"\d{4,}")
_ALPHANUMERIC_RE = re.compile(r"[A-Z0-9][-A-Z0-9_.]{4,}", re.IGNORECASE)
_DISALLOWED_RE = re.compile(r"[^A-Z0-9\-_.]", re.IGNORECASE)


class BarcodeResult(BaseModel):
    code: Optional[str] = None
    text: str = ""
    confidence: int = 0


def _retail_code(content: str) -> Optional[str]:
    match = _EAN_UPC_RE.search(content)
    return match.group(0) if match else None


def _digit_run(content: str) -> Optional[str]:
    match = _DIGIT_RUN_RE.search(content)
    return match.group(0) if match else None


def _alphanumeric(content: str) -> Optional[str]:
    match = _ALPHANUMERIC_RE.search(content)
    return match.group(0) if match else None


def _short_reply(content: str) -> Optional[str]:
    if not 4 <= len(content) <= 30:
        return None
    cleaned = _DISALLOWED_RE.sub("", content)
    return cleaned if len(cleaned) >= 4 else None


BARCODE_STRATEGIES: Tuple[Callable[[str], Optional[str]], ...] = (
    _retail_code,
    _digit_run,
    _alphanumeric,
    _short_reply,
)


def extract_code(content: str) -> Optional[str]:
    """Return the first code any strategy finds, or None."""
    content = (content or "").strip()
    if not content or content.lower() == "none":
        return None
    for strategy in BARCODE_STRATEGIES:
        code = strategy(content)
        if code:
            return code
    return None


def build_barcode_result(content: str) -> BarcodeResult:
    content = (content or "").strip()
    code = extract_code(content)
    return BarcodeResult(
        code=code, text=content, confidence=CONFIDENCE_FOUND if code else 0
    )
