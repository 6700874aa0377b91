"""
Regex-Based Invoice Extraction

Deterministic first pass over raw OCR text. It never raises: the worst
outcome is a header full of defaults and no line items, which tells the
orchestrator to try the LLM fallback.

Header fields are found with one case-insensitive search each over the
whole text. Line items are read line by line, trying an ordered list of
matcher strategies and keeping the first hit.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from loguru import logger

from saathi_ocr.pipeline.llm.text_parsers import (
    format_money,
    iter_lines,
    normalize_date,
    parse_amount,
    round_money,
    today_iso,
)
from saathi_ocr.pipeline.schema.invoice import (
    DEFAULT_GST_PERCENTAGE,
    InvoiceHeader,
    LineItem,
    ParseResult,
)
from saathi_ocr.pipeline.service.identifiers import IdFactory

CONFIDENCE_OCR_SUCCESS = 85
CONFIDENCE_OCR_PARTIAL = 70

# (name, quantity, unit price) as raw captured text
Candidate = Tuple[str, str, str]

_AMOUNT = r"(\d+(?:[,.]\d+)*)"
_CURRENCY = r"(?:₹|rs\.?|inr)"
_AMOUNT_PREFIX = r"(?:[\s:.=\-]|₹|rs|inr)*"


# ============================================================================
# HEADER PATTERNS
# ============================================================================

INVOICE_NUMBER_RE = re.compile(
    r"\b(?:invoice|inv|bill)\b(?:[ \t#:.\-]|no\b|number\b)*(\w+(?:[-/]\w+)*)",
    re.IGNORECASE,
)
INVOICE_DATE_RE = re.compile(
    r"\b(?:dated|date)\b[ \t:.\-]*"
    r"(\d{1,2}[-/]\d{1,2}[-/]\d{2,4}|\d{4}[-/]\d{1,2}[-/]\d{1,2})",
    re.IGNORECASE,
)
GSTIN_RE = re.compile(
    r"\b(?:gstin|gst\s*no)\b(?:[ \t#:.\-]|no\b)*"
    r"(\d{2}[A-Z]{5}\d{4}[A-Z][1-9A-Z]Z[0-9A-Z])",
    re.IGNORECASE,
)
TOTAL_RE = re.compile(
    r"\b(?:grand\s*total|net\s*amount|total(?:\s*amount)?)\b" + _AMOUNT_PREFIX + _AMOUNT,
    re.IGNORECASE,
)
TAX_RE = re.compile(
    r"\b(?:tax|gst|vat)\b" + _AMOUNT_PREFIX + _AMOUNT,
    re.IGNORECASE,
)


# ============================================================================
# LINE ITEM PATTERNS
# ============================================================================

# Column headers and summary rows never describe a product
SKIP_LINE_RE = re.compile(
    r"^(?:s\.?\s*no|sr\.?\s*no|item|description|qty|quantity|rate|price|amount"
    r"|total|subtotal|tax|gst)",
    re.IGNORECASE,
)
SUMMARY_NAME_RE = re.compile(
    r"total|subtotal|amount paid|tax|gst|cgst|sgst|igst|discount|balance|due|grand",
    re.IGNORECASE,
)
ORDINAL_PREFIX_RE = re.compile(r"^\d+[.)]\s*")

NAME_QTY_PRICE_RE = re.compile(
    r"^(.+?)\s+(\d+)\s+" + _CURRENCY + r"?\s*" + _AMOUNT + r"\s*$", re.IGNORECASE
)
NAME_PRICE_QTY_RE = re.compile(
    r"^(.+?)\s+" + _CURRENCY + r"?\s*" + _AMOUNT + r"\s+(\d+)\s*$", re.IGNORECASE
)
NAME_PRICE_TIMES_QTY_RE = re.compile(
    r"^(.+?)(?:\s*[-:]\s*|\s+)" + _CURRENCY + r"?\s*" + _AMOUNT + r"\s*[x×*]\s*(\d+)",
    re.IGNORECASE,
)
NAME_CURRENCY_PRICE_RE = re.compile(
    r"^(.+?)\s+" + _CURRENCY + r"\s*" + _AMOUNT + r"\s*$", re.IGNORECASE
)
COLUMN_SPLIT_RE = re.compile(r"\s{2,}|\t+")


def _name_qty_price(line: str) -> Optional[Candidate]:
    match = NAME_QTY_PRICE_RE.match(line)
    if match:
        return match.group(1), match.group(2), match.group(3)
    return None


def _name_price_qty(line: str) -> Optional[Candidate]:
    match = NAME_PRICE_QTY_RE.match(line)
    if match:
        return match.group(1), match.group(3), match.group(2)
    return None


def _name_price_times_qty(line: str) -> Optional[Candidate]:
    match = NAME_PRICE_TIMES_QTY_RE.match(line)
    if match:
        return match.group(1), match.group(3), match.group(2)
    return None


def _name_currency_price(line: str) -> Optional[Candidate]:
    match = NAME_CURRENCY_PRICE_RE.match(line)
    # short names here are usually stray tokens, not products
    if match and len(match.group(1).strip()) > 3:
        return match.group(1), "1", match.group(2)
    return None


def _table_row(line: str) -> Optional[Candidate]:
    columns = COLUMN_SPLIT_RE.split(line)
    if len(columns) < 3:
        return None
    name = columns[0]
    numbers = []
    for column in columns[1:]:
        digits = re.sub(r"[^\d.]", "", column)
        if digits and parse_amount(digits) is not None:
            numbers.append(digits)
    if len(name.strip()) > 2 and len(numbers) >= 2:
        return name, numbers[0], numbers[1]
    return None


# Tried in order; the first strategy that matches a line wins
LINE_ITEM_STRATEGIES: Tuple[Callable[[str], Optional[Candidate]], ...] = (
    _name_qty_price,
    _name_price_qty,
    _name_price_times_qty,
    _name_currency_price,
    _table_row,
)


# ============================================================================
# EXTRACTION
# ============================================================================


def _first_amount(pattern: re.Pattern, text: str) -> Decimal:
    match = pattern.search(text)
    if not match:
        return Decimal("0")
    return parse_amount(match.group(1)) or Decimal("0")


def extract_header(text: str, ids: IdFactory) -> InvoiceHeader:
    """
    Pull invoice-level fields out of the OCR text.

    Tax is assumed to be intra-state: it is split evenly into CGST and SGST
    and IGST stays zero.
    """
    number_match = INVOICE_NUMBER_RE.search(text)
    invoice_number = number_match.group(1) if number_match else ids.invoice_number()

    invoice_date = None
    date_match = INVOICE_DATE_RE.search(text)
    if date_match:
        invoice_date = normalize_date(date_match.group(1))
        if invoice_date is None:
            logger.debug("Unparseable invoice date {raw!r}", raw=date_match.group(1))

    gstin_match = GSTIN_RE.search(text)

    total = _first_amount(TOTAL_RE, text)
    tax = _first_amount(TAX_RE, text)
    taxable_value = total - tax if total > 0 else Decimal("0")
    half_tax = tax / 2

    return InvoiceHeader(
        invoice_number=invoice_number,
        invoice_date=invoice_date or today_iso(),
        buyer_gstin=gstin_match.group(1).upper() if gstin_match else "",
        taxable_value=format_money(taxable_value),
        cgst=format_money(half_tax),
        sgst=format_money(half_tax),
        igst=format_money(Decimal("0")),
        total=format_money(total),
    )


def match_line(line: str) -> Optional[Candidate]:
    """Run the strategies over one line and return the first candidate."""
    if SKIP_LINE_RE.match(line):
        return None
    for strategy in LINE_ITEM_STRATEGIES:
        candidate = strategy(line)
        if candidate:
            return candidate
    return None


def build_line_item(candidate: Candidate, ids: IdFactory) -> Optional[LineItem]:
    """Clean a raw candidate; None when it is a summary row or has no value."""
    raw_name, raw_quantity, raw_price = candidate
    name = ORDINAL_PREFIX_RE.sub("", raw_name.strip()).strip()
    if len(name) <= 2 or SUMMARY_NAME_RE.search(name):
        return None

    quantity_value = parse_amount(raw_quantity)
    unit_price = parse_amount(raw_price)
    if quantity_value is None or unit_price is None:
        return None
    quantity = int(quantity_value)
    if quantity <= 0 or unit_price <= 0:
        return None

    gst = Decimal(str(DEFAULT_GST_PERCENTAGE))
    return LineItem(
        product_name=name,
        product_id=ids.product_id(),
        quantity=quantity,
        unit_price=float(unit_price),
        gst_percentage=DEFAULT_GST_PERCENTAGE,
        hsn_code="",
        line_tax=round_money(unit_price * quantity * gst / 100),
    )


def extract_line_items(text: str, ids: IdFactory) -> List[LineItem]:
    items: List[LineItem] = []
    for line in iter_lines(text):
        candidate = match_line(line)
        if not candidate:
            continue
        item = build_line_item(candidate, ids)
        if item is None:
            logger.debug("Rejected line item candidate: {line!r}", line=line)
            continue
        items.append(item)
    return items


def extract_invoice(
    text: str, ocr_succeeded: bool = True, ids: Optional[IdFactory] = None
) -> ParseResult:
    """
    Regex extraction over the whole OCR text.

    Args:
        text: Raw OCR text
        ocr_succeeded: Whether the OCR engine reported a full parse
        ids: Id factory for this parse call (a fresh one when omitted)

    Returns:
        ParseResult with ``parsing_method="regex"``
    """
    ids = ids or IdFactory()
    header = extract_header(text, ids)
    items = extract_line_items(text, ids)
    logger.info("Regex extraction found {count} line items", count=len(items))
    return ParseResult(
        invoice=header,
        line_items=items,
        ocr_confidence=CONFIDENCE_OCR_SUCCESS if ocr_succeeded else CONFIDENCE_OCR_PARTIAL,
        parsing_method="regex",
    )
