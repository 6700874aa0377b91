"""
Invoice Text Parsing Orchestrator

Turns OCR text into a structured invoice:

1. RegexAttempt → deterministic extraction (no API cost)
2. Decision → regex found line items? done, method "regex"
3. LLMAttempt → Groq fallback; used only if it yields at least one item,
   otherwise the regex result (with no items) is returned unchanged

Each parse call is independent and keeps no state between calls.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from loguru import logger

from saathi_ocr.pipeline.schema.invoice import ParseResult
from saathi_ocr.pipeline.service.identifiers import IdFactory
from saathi_ocr.pipeline.service.llm_extractor import LLMInvoiceExtractor
from saathi_ocr.pipeline.service.regex_extractor import extract_invoice


class InvoiceTextParser:
    """
    Layered invoice parser: regex first, LLM fallback second.

    Args:
        llm_extractor: Fallback extractor; None disables the fallback
        clock: Time source for synthesised ids (seconds since epoch)
    """

    def __init__(
        self,
        llm_extractor: Optional[LLMInvoiceExtractor] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.llm_extractor = llm_extractor
        self.clock = clock

    def parse(self, text: str, ocr_succeeded: bool = True) -> ParseResult:
        ids = IdFactory(self.clock)

        result = extract_invoice(text, ocr_succeeded=ocr_succeeded, ids=ids)
        if result.line_items:
            return result

        if self.llm_extractor is None:
            return result

        logger.info("No items from regex, trying Groq AI parsing")
        ai_result = self.llm_extractor.extract(text, ids=ids)
        if ai_result is not None and ai_result.line_items:
            logger.info(
                "Groq extracted {count} items", count=len(ai_result.line_items)
            )
            return ai_result

        logger.info("LLM fallback produced no items; keeping regex result")
        return result
