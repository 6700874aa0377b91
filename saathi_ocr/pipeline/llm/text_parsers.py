"""
Text parsing utilities for invoice data extraction.

This module contains the small helpers shared by the regex extractor, the
LLM fallback and the Mindee mapper: number coercion, money formatting,
date normalisation and JSON recovery from chat-model replies.
"""

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, List, Optional

TWO_PLACES = Decimal("0.01")

# Anything this large is OCR gluing digit runs together, not an amount
MAX_AMOUNT = Decimal("1e12")

# Wide enough to quantize products of bounded amounts
_MONEY_PRECISION = 60

# Currency markers OCR leaves in front of Indian amounts
_CURRENCY_MARKERS = re.compile(r"₹|\brs\.?|\binr\b", re.IGNORECASE)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

# Accepted layouts for an invoice date, day-first before year-first
_DATE_LAYOUTS = [
    (re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$"), ("year", "month", "day")),
    (re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$"), ("day", "month", "year")),
    (re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{2})$"), ("day", "month", "year")),
]


def iter_lines(text: str) -> List[str]:
    """
    Return non-empty lines from text, trimmed.

    Args:
        text: Text to split into lines

    Returns:
        List of non-empty lines
    """
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_amount(raw: str) -> Optional[Decimal]:
    """
    Convert an OCR amount such as ``1,23,456.50`` to Decimal.

    Commas are treated as thousands separators (Indian and western grouping
    both use them that way).

    Args:
        raw: Digits with optional separators

    Returns:
        Amount as Decimal, or None if extraction fails or the value is not
        a plausible amount (non-finite, or at least ``MAX_AMOUNT``)
    """
    cleaned = raw.replace(",", "").strip()
    if not cleaned:
        return None
    try:
        return _plausible(Decimal(cleaned))
    except (InvalidOperation, ValueError):
        return None


def _plausible(number: Decimal) -> Optional[Decimal]:
    if not number.is_finite() or abs(number) >= MAX_AMOUNT:
        return None
    return number


def coerce_number(value: Any) -> Optional[Decimal]:
    """
    Coerce a loosely typed value (int, float, ``"₹1,200.50"``) to Decimal.

    Booleans and unparseable values return None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (Decimal, int, float)):
        return _plausible(Decimal(str(value)))
    if isinstance(value, str):
        text = _CURRENCY_MARKERS.sub("", value).strip()
        match = re.search(r"-?\d[\d,]*(?:\.\d+)?|-?\.\d+", text)
        if not match:
            return None
        return parse_amount(match.group(0))
    return None


def format_money(value: Optional[Decimal]) -> str:
    """Format an amount with exactly two decimals (``None`` becomes ``0.00``)."""
    if value is None:
        value = Decimal("0")
    return str(_to_paise(value))


def round_money(value: Decimal) -> float:
    """Round to paise and return a JSON-friendly float."""
    return float(_to_paise(value))


def _to_paise(value: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _MONEY_PRECISION
        return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def today_iso() -> str:
    return date.today().isoformat()


def normalize_date(raw: str) -> Optional[str]:
    """
    Normalise ``DD-MM-YYYY``, ``DD/MM/YY`` or ``YYYY-MM-DD`` to ISO format.

    Two-digit years are read as 20YY.

    Args:
        raw: Date text as captured from the document

    Returns:
        Date in ISO format (YYYY-MM-DD) or None when it is not a real date
    """
    candidate = raw.strip()
    for pattern, order in _DATE_LAYOUTS:
        match = pattern.match(candidate)
        if not match:
            continue
        parts = dict(zip(order, (int(group) for group in match.groups())))
        if parts["year"] < 100:
            parts["year"] += 2000
        try:
            return date(parts["year"], parts["month"], parts["day"]).isoformat()
        except ValueError:
            return None
    try:
        return datetime.fromisoformat(candidate).date().isoformat()
    except ValueError:
        return None


def extract_json_block(content: str) -> str:
    """
    Pull the JSON object out of a chat-model reply.

    Models often wrap the payload in Markdown fences or add a sentence
    around it; take the fenced body when present, then the outermost
    ``{...}`` span.
    """
    candidate = content.strip()
    fenced = _FENCED_BLOCK.search(candidate)
    if fenced:
        candidate = fenced.group(1)
    braces = _JSON_OBJECT.search(candidate)
    if braces:
        candidate = braces.group(0)
    return candidate
