"""
Invoice data contracts.

``InvoiceHeader``, ``LineItem`` and ``ParseResult`` are what the service
returns. The ``LLM*`` models validate what the Groq model sends back before
any of it is trusted: numeric strings are coerced, but a line item without
a name or a unit price is rejected instead of being filled with zeros.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from saathi_ocr.pipeline.llm.text_parsers import coerce_number

DEFAULT_GST_PERCENTAGE = 18.0

ParsingMethod = Literal["regex", "ai", "mindee"]


# ============================================================================
# OUTPUT MODELS
# ============================================================================


class InvoiceHeader(BaseModel):
    """Invoice-level fields; every amount is a 2-decimal string."""

    model_config = ConfigDict(populate_by_name=True)

    invoice_number: str = Field(alias="invoiceNumber")
    invoice_date: str = Field(alias="invoiceDate")
    buyer_gstin: str = Field(default="", alias="buyerGSTIN")
    taxable_value: str = Field(default="0.00", alias="taxableValue")
    cgst: str = "0.00"
    sgst: str = "0.00"
    igst: str = "0.00"
    total: str = "0.00"


class LineItem(BaseModel):
    product_name: str = Field(min_length=1)
    product_id: str
    quantity: int = Field(gt=0)
    unit_price: float = Field(gt=0)
    gst_percentage: float = DEFAULT_GST_PERCENTAGE
    hsn_code: str = ""
    line_tax: float = 0.0


class ParseResult(BaseModel):
    """Structured extraction returned to the caller."""

    model_config = ConfigDict(populate_by_name=True)

    invoice: InvoiceHeader
    line_items: List[LineItem] = Field(default_factory=list, alias="lineItems")
    ocr_confidence: int = Field(alias="ocrConfidence")
    parsing_method: ParsingMethod = Field(alias="parsingMethod")

    def to_payload(self) -> Dict[str, Any]:
        """Serialise with the public (camelCase header) key names."""
        return self.model_dump(by_alias=True, mode="json")


# ============================================================================
# LLM RESPONSE MODELS
# ============================================================================


def _required_number(value: Any) -> Decimal:
    number = coerce_number(value)
    if number is None:
        raise ValueError(f"not a number: {value!r}")
    return number


class LLMLineItem(BaseModel):
    """One entry of ``lineItems`` as produced by the model."""

    model_config = ConfigDict(extra="ignore")

    product_name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("product_name", "name", "description"),
    )
    product_id: Optional[str] = None
    quantity: Decimal = Decimal("1")
    unit_price: Decimal
    gst_percentage: Decimal = Decimal(str(DEFAULT_GST_PERCENTAGE))
    hsn_code: str = ""
    line_tax: Optional[Decimal] = None

    @field_validator("product_name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("product_id", mode="before")
    @classmethod
    def _product_id(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value).strip() or None

    @field_validator("hsn_code", mode="before")
    @classmethod
    def _hsn_code(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, value: Any) -> Decimal:
        if value is None or value == "":
            return Decimal("1")
        return _required_number(value)

    @field_validator("unit_price", mode="before")
    @classmethod
    def _unit_price(cls, value: Any) -> Decimal:
        return _required_number(value)

    @field_validator("gst_percentage", mode="before")
    @classmethod
    def _gst_percentage(cls, value: Any) -> Decimal:
        number = coerce_number(value)
        # a zero or missing rate means the model did not know it
        if not number:
            return Decimal(str(DEFAULT_GST_PERCENTAGE))
        return number

    @field_validator("line_tax", mode="before")
    @classmethod
    def _line_tax(cls, value: Any) -> Optional[Decimal]:
        number = coerce_number(value)
        return number if number else None


class LLMInvoiceHeader(BaseModel):
    """The ``invoice`` object of the model reply; amounts may be str or number."""

    model_config = ConfigDict(extra="ignore")

    invoice_number: Optional[str] = Field(default=None, alias="invoiceNumber")
    invoice_date: Optional[str] = Field(default=None, alias="invoiceDate")
    buyer_gstin: Optional[str] = Field(default=None, alias="buyerGSTIN")
    taxable_value: Decimal = Field(default=Decimal("0"), alias="taxableValue")
    cgst: Decimal = Decimal("0")
    sgst: Decimal = Decimal("0")
    igst: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    @field_validator("invoice_number", "invoice_date", "buyer_gstin", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("taxable_value", "cgst", "sgst", "igst", "total", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> Decimal:
        number = coerce_number(value)
        return number if number is not None else Decimal("0")


class LLMInvoicePayload(BaseModel):
    """Top-level reply: the header plus raw line items validated one by one."""

    model_config = ConfigDict(extra="ignore")

    invoice: LLMInvoiceHeader
    line_items: List[Any] = Field(alias="lineItems")
