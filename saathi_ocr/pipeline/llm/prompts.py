"""
LLM Prompts for Invoice Extraction and Barcode Reading

The invoice prompt pins the model to the exact reply contract the parser
validates (header fields + ``lineItems``) and asks for at least one line
item built from the total when no items are visible, so the fallback
always has something to offer.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

# ============================================================================
# SCHEMA DEFINITION
# ============================================================================

SCHEMA_SNIPPET = {
    "invoice": {
        "invoiceNumber": "string",
        "invoiceDate": "YYYY-MM-DD",
        "buyerGSTIN": "string or empty",
        "sellerGSTIN": "string or empty",
        "vendorName": "string or empty",
        "taxableValue": "number as string",
        "cgst": "number as string",
        "sgst": "number as string",
        "igst": "number as string",
        "total": "number as string",
    },
    "lineItems": [
        {
            "product_name": "string",
            "product_id": "SKU or serial",
            "quantity": "number",
            "unit_price": "number",
            "gst_percentage": "number",
            "hsn_code": "string or empty",
            "line_tax": "number",
        }
    ],
}

BARCODE_PROMPT = (
    "This image contains a barcode or QR code on a product. Read the number "
    "printed below or near the barcode. Return ONLY the digits/characters of "
    "the barcode. Example response: 8901063011014. Do not include any other "
    "text, explanation, or formatting. Just the code."
)


# ============================================================================
# PROMPT BUILDERS
# ============================================================================


def build_system_prompt() -> str:
    schema_text = json.dumps(SCHEMA_SNIPPET, ensure_ascii=False, indent=2)
    return (
        "You are an invoice data extraction expert. Extract structured data from "
        "Indian GST invoice text.\n"
        "Return ONLY valid JSON with this exact structure (no markdown, no explanation):\n"
        f"{schema_text}\n"
        "Dates must be YYYY-MM-DD. GSTIN values are 15 characters. "
        "If no line items are found, return at least one item using the total amount. "
        "Always return valid JSON."
    )


def build_user_prompt(text: str) -> str:
    return f"Extract invoice data from this OCR text:\n\n{text}"


def build_messages(text: str) -> List[Dict[str, str]]:
    """
    Build chat messages for invoice extraction.

    Args:
        text: OCR extracted text from invoice

    Returns:
        list: OpenAI-style ``[system, user]`` messages
    """
    return [
        {"role": "system", "content": build_system_prompt()},
        {"role": "user", "content": build_user_prompt(text)},
    ]


def build_barcode_messages(mime_type: str, base64_data: str) -> List[Dict[str, Any]]:
    """Vision message asking the model to read a barcode from an image."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": BARCODE_PROMPT},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{mime_type};base64,{base64_data}"},
                },
            ],
        }
    ]
