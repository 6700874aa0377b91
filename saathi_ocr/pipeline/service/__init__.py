"""
Invoice extraction services.

- regex_extractor.py: deterministic header + line item extraction
- llm_extractor.py: Groq fallback with reply validation
- orchestrator.py: InvoiceTextParser (regex first, LLM second)
- barcode.py: code recovery from vision-model replies
- identifiers.py: synthesised invoice numbers and SKUs
"""

from .orchestrator import InvoiceTextParser

__all__ = ["InvoiceTextParser"]
