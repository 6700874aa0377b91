"""
Mindee invoice client.

Mindee's invoice product does OCR and field extraction in one call, so
this path skips the text parser and maps the prediction straight into a
``ParseResult``.
"""

import base64
import binascii
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from saathi_ocr.pipeline.config.settings import Settings
from saathi_ocr.pipeline.errors import OCRConfigurationError, OCRError
from saathi_ocr.pipeline.llm.text_parsers import (
    coerce_number,
    format_money,
    normalize_date,
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

DEFAULT_MINDEE_URL = "https://api.mindee.net/v1/products/mindee/invoices/v4/predict"
CONFIDENCE_MINDEE = 94


def _field_value(prediction: Dict[str, Any], name: str) -> Any:
    field = prediction.get(name) or {}
    return field.get("value") if isinstance(field, dict) else None


def _amount(prediction: Dict[str, Any], name: str) -> Decimal:
    return coerce_number(_field_value(prediction, name)) or Decimal("0")


class MindeeInvoiceClient:
    def __init__(
        self,
        api_key: Optional[str],
        url: str = DEFAULT_MINDEE_URL,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.session = session or requests

    @classmethod
    def from_settings(
        cls, settings: Settings, session: Optional[requests.Session] = None
    ) -> "MindeeInvoiceClient":
        return cls(
            api_key=settings.mindee_api_key,
            url=settings.mindee_url,
            timeout=settings.http_timeout_seconds,
            session=session,
        )

    def predict(
        self,
        base64_data: str,
        mime_type: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Submit a document and return Mindee's ``prediction`` object.

        Raises:
            OCRConfigurationError: If no API key is configured
            OCRError: If the payload is not base64, the call fails, or the
                response carries no prediction
        """
        if not self.api_key:
            raise OCRConfigurationError("MINDEE_API_KEY is not configured on server")

        try:
            content = base64.b64decode(base64_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise OCRError("base64Data is not valid base64") from exc

        files = {
            "document": (
                file_name or "invoice.jpg",
                content,
                mime_type or "application/octet-stream",
            )
        }
        headers = {"Authorization": f"Token {self.api_key}"}

        try:
            response = self.session.post(
                self.url, headers=headers, files=files, timeout=self.timeout
            )
        except requests.exceptions.RequestException as exc:
            raise OCRError(f"Mindee request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise OCRError(
                f"Mindee returned a non-JSON response ({response.status_code})"
            ) from exc

        if not response.ok:
            detail = (
                ((data.get("api_request") or {}).get("error") or {}).get("message")
                or data.get("message")
                or "Mindee OCR request failed"
            )
            logger.error(
                "Mindee error {code}: {detail}", code=response.status_code, detail=detail
            )
            raise OCRError(detail, status_code=response.status_code)

        prediction = (
            ((data.get("document") or {}).get("inference") or {}).get("prediction")
        )
        if not prediction:
            raise OCRError("Mindee response did not contain prediction", status_code=422)
        return prediction

    def extract_invoice(
        self,
        base64_data: str,
        mime_type: Optional[str] = None,
        file_name: Optional[str] = None,
        ids: Optional[IdFactory] = None,
    ) -> ParseResult:
        prediction = self.predict(base64_data, mime_type=mime_type, file_name=file_name)
        return map_prediction(prediction, ids or IdFactory())


def map_prediction(prediction: Dict[str, Any], ids: IdFactory) -> ParseResult:
    """Map a Mindee invoice-v4 prediction onto the service's result shape."""
    total = _amount(prediction, "total_amount")
    taxable_value = _amount(prediction, "total_net") or total
    half_tax = _amount(prediction, "total_tax") / 2

    raw_date = _field_value(prediction, "date")
    invoice_date = normalize_date(str(raw_date)) if raw_date else None

    header = InvoiceHeader(
        invoice_number=str(
            _field_value(prediction, "invoice_number") or ids.invoice_number()
        ),
        invoice_date=invoice_date or today_iso(),
        buyer_gstin=str(_field_value(prediction, "customer_tax_id") or "").upper(),
        taxable_value=format_money(taxable_value),
        cgst=format_money(half_tax),
        sgst=format_money(half_tax),
        igst=format_money(Decimal("0")),
        total=format_money(total),
    )

    items = map_line_items(prediction.get("line_items") or [], ids)
    logger.info("Mindee returned {count} usable line items", count=len(items))
    return ParseResult(
        invoice=header,
        line_items=items,
        ocr_confidence=CONFIDENCE_MINDEE,
        parsing_method="mindee",
    )


def map_line_items(raw_items: List[Any], ids: IdFactory) -> List[LineItem]:
    items: List[LineItem] = []
    for position, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            logger.warning("Skipping Mindee line item {position}: not an object", position=position)
            continue
        quantity_value = coerce_number(raw.get("quantity")) or Decimal("1")
        unit_price = coerce_number(raw.get("unit_price")) or Decimal("0")
        quantity = int(quantity_value)
        if quantity <= 0 or unit_price <= 0:
            continue
        items.append(
            LineItem(
                product_name=str(raw.get("description") or "").strip() or f"Item {position}",
                product_id=str(raw.get("product_code") or ids.product_id()),
                quantity=quantity,
                unit_price=float(unit_price),
                gst_percentage=DEFAULT_GST_PERCENTAGE,
                hsn_code="",
                line_tax=round_money(coerce_number(raw.get("tax_amount")) or Decimal("0")),
            )
        )
    return items
