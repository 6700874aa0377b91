from .invoice import (
    DEFAULT_GST_PERCENTAGE,
    InvoiceHeader,
    LineItem,
    LLMInvoiceHeader,
    LLMInvoicePayload,
    LLMLineItem,
    ParseResult,
)

__all__ = [
    "DEFAULT_GST_PERCENTAGE",
    "InvoiceHeader",
    "LineItem",
    "LLMInvoiceHeader",
    "LLMInvoicePayload",
    "LLMLineItem",
    "ParseResult",
]
