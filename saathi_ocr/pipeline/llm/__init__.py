"""
LLM module for invoice extraction.

This module provides the Groq client, prompt builders and the text
parsing utilities shared across the pipeline.
"""

from .groq_client import GroqClient
from .prompts import build_barcode_messages, build_messages
from .text_parsers import (
    coerce_number,
    extract_json_block,
    format_money,
    iter_lines,
    normalize_date,
    parse_amount,
    round_money,
    today_iso,
)

__all__ = [
    # Main LLM client
    "GroqClient",
    # Prompts
    "build_messages",
    "build_barcode_messages",
    # Text parsing utilities
    "coerce_number",
    "extract_json_block",
    "format_money",
    "iter_lines",
    "normalize_date",
    "parse_amount",
    "round_money",
    "today_iso",
]
