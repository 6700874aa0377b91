import base64

import pytest
import requests

from conftest import FakeResponse, FakeSession, chat_response, fixed_clock
from saathi_ocr.pipeline.errors import LLMError, OCRConfigurationError, OCRError
from saathi_ocr.pipeline.llm.groq_client import GroqClient
from saathi_ocr.pipeline.ocr.mindee import MindeeInvoiceClient, map_prediction
from saathi_ocr.pipeline.ocr.ocr_space import OCRSpaceClient
from saathi_ocr.pipeline.service.identifiers import IdFactory

IMAGE_B64 = base64.b64encode(b"fake image bytes").decode()


# ============================================================================
# GROQ
# ============================================================================


def test_groq_chat_posts_openai_payload():
    session = FakeSession(chat_response("hello"))
    client = GroqClient(
        api_key="groq-key",
        base_url="https://api.groq.com/openai/v1/",
        model="test-model",
        timeout=5,
        session=session,
    )

    assert client.chat([{"role": "user", "content": "hi"}], max_tokens=10) == "hello"

    call = session.calls[0]
    assert call["url"] == "https://api.groq.com/openai/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer groq-key"
    assert call["json"]["model"] == "test-model"
    assert call["json"]["temperature"] == 0.0
    assert call["json"]["max_tokens"] == 10
    assert call["timeout"] == 5


def test_groq_chat_without_key_raises():
    with pytest.raises(LLMError):
        GroqClient(api_key="", session=FakeSession()).chat([])


def test_groq_chat_non_200_raises_once():
    session = FakeSession(FakeResponse(429, {"error": "rate limited"}))

    with pytest.raises(LLMError):
        GroqClient(api_key="k", session=session).chat([])
    assert len(session.calls) == 1


def test_groq_chat_malformed_body_raises():
    session = FakeSession(FakeResponse(200, {"choices": []}))

    with pytest.raises(LLMError):
        GroqClient(api_key="k", session=session).chat([])


def test_groq_client_from_settings(settings):
    client = GroqClient.from_settings(settings, session=FakeSession())

    assert client.configured
    assert client.model == settings.groq_model
    assert client.timeout == settings.http_timeout_seconds


# ============================================================================
# OCR.SPACE
# ============================================================================


def _ocr_payload(text: str, exit_code: int = 1) -> dict:
    return {
        "IsErroredOnProcessing": False,
        "ParsedResults": [{"ParsedText": text, "FileParseExitCode": exit_code}],
    }


def test_ocr_space_sends_data_uri_form():
    session = FakeSession(FakeResponse(200, _ocr_payload("Invoice No: 1")))
    result = OCRSpaceClient(api_key="ocr-key", session=session).extract_text(
        IMAGE_B64, mime_type="image/png"
    )

    assert result.text == "Invoice No: 1"
    assert result.success is True
    form = session.calls[0]["data"]
    assert form["apikey"] == "ocr-key"
    assert form["base64Image"] == f"data:image/png;base64,{IMAGE_B64}"
    assert form["OCREngine"] == "2"
    assert form["language"] == "eng"


def test_ocr_space_default_mime_and_partial_success():
    session = FakeSession(FakeResponse(200, _ocr_payload("text", exit_code=0)))
    result = OCRSpaceClient(api_key="ocr-key", session=session).extract_text(IMAGE_B64)

    assert result.success is False
    assert session.calls[0]["data"]["base64Image"].startswith("data:image/jpeg;base64,")


def test_ocr_space_requires_key():
    with pytest.raises(OCRConfigurationError, match="OCR_SPACE_API_KEY"):
        OCRSpaceClient(api_key=None, session=FakeSession()).extract_text(IMAGE_B64)


def test_ocr_space_processing_error_message():
    payload = {"IsErroredOnProcessing": True, "ErrorMessage": ["File failed validation"]}
    client = OCRSpaceClient(api_key="k", session=FakeSession(FakeResponse(200, payload)))

    with pytest.raises(OCRError, match="File failed validation"):
        client.extract_text(IMAGE_B64)


def test_ocr_space_empty_text():
    client = OCRSpaceClient(api_key="k", session=FakeSession(FakeResponse(200, _ocr_payload(""))))

    with pytest.raises(OCRError, match="No text extracted"):
        client.extract_text(IMAGE_B64)


def test_ocr_space_network_error(connection_error):
    client = OCRSpaceClient(api_key="k", session=FakeSession(connection_error))

    with pytest.raises(OCRError):
        client.extract_text(IMAGE_B64)


# ============================================================================
# MINDEE
# ============================================================================

PREDICTION = {
    "invoice_number": {"value": "MD-77"},
    "date": {"value": "2024-07-12"},
    "customer_tax_id": {"value": "27aapfu0939f1zv"},
    "total_amount": {"value": 1180.0},
    "total_net": {"value": 1000.0},
    "total_tax": {"value": 180.0},
    "line_items": [
        {"description": "Cement Bag", "product_code": "CEM-50", "quantity": 2, "unit_price": 400, "tax_amount": 144},
        {"description": "Sand", "quantity": None, "unit_price": 200},
        {"description": "Freebie", "quantity": 1, "unit_price": 0},
    ],
}


def test_map_prediction():
    result = map_prediction(PREDICTION, IdFactory(fixed_clock))
    payload = result.to_payload()

    assert payload["invoice"] == {
        "invoiceNumber": "MD-77",
        "invoiceDate": "2024-07-12",
        "buyerGSTIN": "27AAPFU0939F1ZV",
        "taxableValue": "1000.00",
        "cgst": "90.00",
        "sgst": "90.00",
        "igst": "0.00",
        "total": "1180.00",
    }
    assert payload["ocrConfidence"] == 94
    assert payload["parsingMethod"] == "mindee"
    assert [item["product_name"] for item in payload["lineItems"]] == ["Cement Bag", "Sand"]
    assert payload["lineItems"][0]["product_id"] == "CEM-50"
    assert payload["lineItems"][0]["line_tax"] == 144.0
    assert payload["lineItems"][1]["quantity"] == 1
    assert payload["lineItems"][1]["product_id"] == "SKU-1720770000500-1"


def test_map_prediction_defaults():
    result = map_prediction({"total_amount": {"value": 500}}, IdFactory(fixed_clock))

    assert result.invoice.invoice_number == "INV-000500"
    assert result.invoice.taxable_value == "500.00"
    assert result.line_items == []


def test_mindee_posts_multipart_with_token():
    body = {"document": {"inference": {"prediction": PREDICTION}}}
    session = FakeSession(FakeResponse(201, body))
    client = MindeeInvoiceClient(api_key="mindee-key", session=session)

    result = client.extract_invoice(IMAGE_B64, mime_type="image/png", file_name="bill.png")

    assert result.invoice.invoice_number == "MD-77"
    call = session.calls[0]
    assert call["headers"]["Authorization"] == "Token mindee-key"
    assert call["files"]["document"] == ("bill.png", b"fake image bytes", "image/png")


def test_mindee_error_message_is_surfaced():
    body = {"api_request": {"error": {"message": "Invalid token provided"}}}
    client = MindeeInvoiceClient(api_key="bad", session=FakeSession(FakeResponse(401, body)))

    with pytest.raises(OCRError, match="Invalid token provided"):
        client.extract_invoice(IMAGE_B64)


def test_mindee_missing_prediction():
    client = MindeeInvoiceClient(api_key="k", session=FakeSession(FakeResponse(201, {"document": {}})))

    with pytest.raises(OCRError, match="did not contain prediction"):
        client.extract_invoice(IMAGE_B64)


def test_mindee_requires_key_and_valid_base64():
    with pytest.raises(OCRConfigurationError):
        MindeeInvoiceClient(api_key=None, session=FakeSession()).extract_invoice(IMAGE_B64)

    with pytest.raises(OCRError, match="base64"):
        MindeeInvoiceClient(api_key="k", session=FakeSession()).extract_invoice("not base64!!")


def test_groq_chat_rejects_non_text_content():
    parts = {"choices": [{"message": {"content": [{"type": "text", "text": "{}"}]}}]}
    session = FakeSession(FakeResponse(200, parts))

    with pytest.raises(LLMError, match="expected text"):
        GroqClient(api_key="k", session=session).chat([])


def test_mindee_errors_carry_http_status():
    rejected = MindeeInvoiceClient(
        api_key="bad",
        session=FakeSession(FakeResponse(401, {"api_request": {"error": {"message": "Invalid token"}}})),
    )
    with pytest.raises(OCRError) as rejected_info:
        rejected.extract_invoice(IMAGE_B64)
    assert rejected_info.value.status_code == 401

    empty = MindeeInvoiceClient(api_key="k", session=FakeSession(FakeResponse(201, {"document": {}})))
    with pytest.raises(OCRError) as empty_info:
        empty.extract_invoice(IMAGE_B64)
    assert empty_info.value.status_code == 422


def test_map_prediction_skips_non_object_line_items():
    prediction = {
        "line_items": [
            "Cement Bag 2 400",
            None,
            ["Sand", 1, 200],
            {"description": "Paint", "quantity": 1, "unit_price": 500},
        ]
    }
    result = map_prediction(prediction, IdFactory(fixed_clock))

    assert [item.product_name for item in result.line_items] == ["Paint"]


def test_clients_default_to_module_level_requests():
    assert GroqClient(api_key="k").session is requests
    assert OCRSpaceClient(api_key="k").session is requests
    assert MindeeInvoiceClient(api_key="k").session is requests
