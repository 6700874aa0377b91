"""
LLM-Based Fallback Extraction

Used only when the regex pass found no line items. The OCR text goes to
Groq with a prompt that fixes the reply contract; the reply is then
validated and normalised before anything reaches the caller.

Any failure (no API key, HTTP error, unparseable JSON, wrong shape) is
logged and reported as ``None`` so the orchestrator can keep the regex
result. There is no retry.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, List, Optional

from loguru import logger
from pydantic import ValidationError

from saathi_ocr.pipeline.errors import LLMError
from saathi_ocr.pipeline.llm.groq_client import GroqClient
from saathi_ocr.pipeline.llm.prompts import build_messages
from saathi_ocr.pipeline.llm.text_parsers import (
    extract_json_block,
    format_money,
    normalize_date,
    round_money,
    today_iso,
)
from saathi_ocr.pipeline.schema.invoice import (
    InvoiceHeader,
    LineItem,
    LLMInvoiceHeader,
    LLMInvoicePayload,
    LLMLineItem,
    ParseResult,
)
from saathi_ocr.pipeline.service.identifiers import IdFactory

CONFIDENCE_AI = 90
MAX_COMPLETION_TOKENS = 2000


class LLMInvoiceExtractor:
    """Structured invoice extraction delegated to a Groq chat model."""

    def __init__(self, client: GroqClient, max_tokens: int = MAX_COMPLETION_TOKENS):
        self.client = client
        self.max_tokens = max_tokens

    def extract(self, text: str, ids: Optional[IdFactory] = None) -> Optional[ParseResult]:
        """
        Ask the model for the invoice and normalise its reply.

        Args:
            text: Raw OCR text
            ids: Id factory for this parse call

        Returns:
            ParseResult with ``parsing_method="ai"``, or None when the model
            is not configured or its reply cannot be used
        """
        if not self.client.configured:
            logger.info("Groq API key not configured; skipping LLM extraction")
            return None

        ids = ids or IdFactory()
        try:
            content = self.client.chat(
                build_messages(text), temperature=0.0, max_tokens=self.max_tokens
            )
        except LLMError as exc:
            logger.warning("LLM invoice extraction failed: {error}", error=exc)
            return None

        logger.debug("LLM raw response length: {chars}", chars=len(content))
        try:
            return parse_llm_response(content, ids)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure normalising LLM reply: {error}", error=exc)
            return None


def parse_llm_response(content: str, ids: IdFactory) -> Optional[ParseResult]:
    """Turn a chat reply into a ParseResult; None when it is unusable."""
    try:
        data = json.loads(extract_json_block(content))
    except json.JSONDecodeError as exc:
        logger.error("LLM returned invalid JSON: {error}", error=exc)
        return None

    try:
        payload = LLMInvoicePayload.model_validate(data)
    except ValidationError as exc:
        logger.error(
            "LLM response does not match the invoice contract: {errors}",
            errors=exc.error_count(),
        )
        return None

    items = normalize_line_items(payload.line_items, ids)
    return ParseResult(
        invoice=normalize_header(payload.invoice, ids),
        line_items=items,
        ocr_confidence=CONFIDENCE_AI,
        parsing_method="ai",
    )


def normalize_header(header: LLMInvoiceHeader, ids: IdFactory) -> InvoiceHeader:
    invoice_date = None
    if header.invoice_date:
        invoice_date = normalize_date(header.invoice_date)

    return InvoiceHeader(
        invoice_number=header.invoice_number or ids.invoice_number(),
        invoice_date=invoice_date or today_iso(),
        buyer_gstin=(header.buyer_gstin or "").upper(),
        taxable_value=format_money(header.taxable_value),
        cgst=format_money(header.cgst),
        sgst=format_money(header.sgst),
        igst=format_money(header.igst),
        total=format_money(header.total),
    )


def normalize_line_items(raw_items: List[Any], ids: IdFactory) -> List[LineItem]:
    """
    Validate each model item on its own.

    Items missing a name or unit price, or with a non-positive quantity or
    price, are dropped; the rest get a SKU and a computed line tax when the
    model left them out.
    """
    items: List[LineItem] = []
    for position, raw in enumerate(raw_items, start=1):
        try:
            parsed = LLMLineItem.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "Dropping LLM line item {position}: {errors} validation errors",
                position=position,
                errors=exc.error_count(),
            )
            continue

        quantity = int(parsed.quantity)
        if quantity <= 0 or parsed.unit_price <= 0:
            logger.debug(
                "Dropping LLM line item {position}: non-positive quantity or price",
                position=position,
            )
            continue

        line_tax = parsed.line_tax
        if line_tax is None:
            line_tax = parsed.unit_price * quantity * parsed.gst_percentage / Decimal(100)
        try:
            rounded_tax = round_money(line_tax)
        except ArithmeticError as exc:
            logger.warning(
                "Dropping LLM line item {position}: {error!r}", position=position, error=exc
            )
            continue

        items.append(
            LineItem(
                product_name=parsed.product_name,
                product_id=parsed.product_id or ids.product_id(),
                quantity=quantity,
                unit_price=float(parsed.unit_price),
                gst_percentage=float(parsed.gst_percentage),
                hsn_code=parsed.hsn_code,
                line_tax=rounded_tax,
            )
        )
    return items
