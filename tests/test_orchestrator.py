import json
from datetime import date

from conftest import FakeResponse, FakeSession, chat_response, fixed_clock
from saathi_ocr.pipeline.llm.groq_client import GroqClient
from saathi_ocr.pipeline.service.llm_extractor import LLMInvoiceExtractor
from saathi_ocr.pipeline.service.orchestrator import InvoiceTextParser

NO_ITEMS_TEXT = "Sharma General Store\nThank you for shopping\nVisit again"

AI_REPLY = json.dumps(
    {
        "invoice": {"invoiceNumber": "SGS-42", "invoiceDate": "2024-07-12", "total": "100"},
        "lineItems": [{"product_name": "Item 1", "quantity": "2", "unit_price": "50"}],
    }
)


def _parser(session: FakeSession, api_key: str = "groq-key") -> InvoiceTextParser:
    client = GroqClient(api_key=api_key, session=session)
    return InvoiceTextParser(llm_extractor=LLMInvoiceExtractor(client), clock=fixed_clock)


def test_regex_result_wins_without_calling_llm():
    session = FakeSession()
    result = _parser(session).parse("Wireless Mouse 3 500\nTotal: 1500")

    assert result.parsing_method == "regex"
    assert result.ocr_confidence == 85
    assert len(result.line_items) == 1
    assert session.calls == []


def test_no_api_key_keeps_empty_regex_result():
    session = FakeSession()
    result = _parser(session, api_key=None).parse(NO_ITEMS_TEXT)
    payload = result.to_payload()

    assert payload["lineItems"] == []
    assert payload["parsingMethod"] == "regex"
    assert payload["invoice"]["invoiceNumber"] == "INV-000500"
    assert payload["invoice"]["invoiceDate"] == date.today().isoformat()
    assert session.calls == []


def test_llm_fallback_used_when_regex_finds_nothing():
    session = FakeSession(chat_response(AI_REPLY))
    result = _parser(session).parse(NO_ITEMS_TEXT, ocr_succeeded=False)

    assert result.parsing_method == "ai"
    assert result.ocr_confidence == 90
    assert result.invoice.invoice_number == "SGS-42"
    item = result.line_items[0]
    assert (item.quantity, item.unit_price, item.line_tax) == (2, 50.0, 18.0)
    assert len(session.calls) == 1


def test_llm_without_items_falls_back_to_regex():
    reply = json.dumps({"invoice": {"invoiceNumber": "X-1"}, "lineItems": []})
    result = _parser(FakeSession(chat_response(reply))).parse(NO_ITEMS_TEXT, ocr_succeeded=False)

    assert result.parsing_method == "regex"
    assert result.ocr_confidence == 70
    assert result.line_items == []
    assert result.invoice.invoice_number == "INV-000500"


def test_llm_failure_is_swallowed():
    result = _parser(FakeSession(FakeResponse(503, {"error": "down"}))).parse(NO_ITEMS_TEXT)

    assert result.parsing_method == "regex"
    assert result.line_items == []


def test_parser_without_fallback():
    result = InvoiceTextParser(clock=fixed_clock).parse(NO_ITEMS_TEXT)

    assert result.parsing_method == "regex"
    assert result.line_items == []


def test_ids_stay_unique_across_regex_and_llm():
    reply = json.dumps(
        {
            "invoice": {},
            "lineItems": [
                {"product_name": "Soap", "quantity": 1, "unit_price": 30},
                {"product_name": "Shampoo", "quantity": 1, "unit_price": 120},
            ],
        }
    )
    result = _parser(FakeSession(chat_response(reply))).parse(NO_ITEMS_TEXT)

    ids = [item.product_id for item in result.line_items]
    assert len(set(ids)) == 2


def test_unusable_llm_replies_keep_the_regex_result():
    oversized = json.dumps(
        {
            "invoice": {},
            "lineItems": [
                {"product_name": "Soap", "quantity": 1, "unit_price": "1234567890123456789012345678901"}
            ],
        }
    )
    content_parts = FakeResponse(
        200, {"choices": [{"message": {"content": [{"type": "text", "text": "{}"}]}}]}
    )

    for reply in (chat_response(oversized), content_parts):
        result = _parser(FakeSession(reply)).parse(NO_ITEMS_TEXT, ocr_succeeded=False)

        assert result.parsing_method == "regex"
        assert result.ocr_confidence == 70
        assert result.line_items == []
