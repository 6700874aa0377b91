"""
OCR API Endpoints

HTTP interface for invoice OCR and extraction.

Endpoints:
- POST /api/ocr/invoice        → OCR.space text + regex/LLM parsing
- POST /api/ocr/invoice/mindee → Mindee structured invoice prediction
- POST /api/ocr/parse-text     → Parse already-extracted OCR text
- POST /api/ocr/barcode        → Read a product barcode with the vision model

The pipeline is blocking (requests-based), so each run happens in a worker
thread behind the service semaphore.
"""

import asyncio

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from loguru import logger

from saathi_ocr.api.dependencies import Services, get_services
from saathi_ocr.api.schemas import DocumentUpload, ParseTextRequest
from saathi_ocr.pipeline.errors import LLMError, OCRError
from saathi_ocr.pipeline.llm.prompts import build_barcode_messages
from saathi_ocr.pipeline.service.barcode import build_barcode_result

router = APIRouter(prefix="/api/ocr", tags=["ocr"])

BARCODE_MAX_TOKENS = 300


def _require_payload(upload: DocumentUpload) -> str:
    if not upload.base64_data:
        raise HTTPException(status_code=400, detail="base64Data is required")
    return upload.base64_data


@router.post("/invoice")
async def invoice_ocr(
    upload: DocumentUpload, services: Services = Depends(get_services)
) -> JSONResponse:
    """
    OCR an invoice with OCR.space and parse the text.

    Returns the parse result plus the raw ``extractedText`` so the client
    can show it next to the editable fields.

    Raises:
        HTTPException 400: base64Data missing
        HTTPException 500: OCR not configured, provider failure, no text
    """
    base64_data = _require_payload(upload)

    def run() -> dict:
        ocr = services.ocr_space.extract_text(base64_data, mime_type=upload.mime_type)
        result = services.parser.parse(ocr.text, ocr_succeeded=ocr.success)
        payload = result.to_payload()
        payload["extractedText"] = ocr.text
        return payload

    try:
        async with services.semaphore:
            payload = await asyncio.to_thread(run)
    except OCRError as exc:
        logger.error("Invoice OCR failed: {error}", error=exc)
        raise HTTPException(status_code=exc.status_code, detail=str(exc))

    logger.info(
        "Invoice OCR done: {count} items via {method}",
        count=len(payload["lineItems"]),
        method=payload["parsingMethod"],
    )
    return JSONResponse(content=payload)


@router.post("/invoice/mindee")
async def invoice_mindee(
    upload: DocumentUpload, services: Services = Depends(get_services)
) -> JSONResponse:
    base64_data = _require_payload(upload)

    try:
        async with services.semaphore:
            result = await asyncio.to_thread(
                services.mindee.extract_invoice,
                base64_data,
                upload.mime_type,
                upload.file_name,
            )
    except OCRError as exc:
        logger.error("Mindee OCR failed: {error}", error=exc)
        raise HTTPException(status_code=exc.status_code, detail=str(exc))

    return JSONResponse(content=result.to_payload())


@router.post("/parse-text")
async def parse_text(
    body: ParseTextRequest, services: Services = Depends(get_services)
) -> JSONResponse:
    """Parse OCR text that was extracted elsewhere."""
    async with services.semaphore:
        result = await asyncio.to_thread(
            services.parser.parse, body.text, body.ocr_succeeded
        )
    return JSONResponse(content=result.to_payload())


@router.post("/barcode")
async def barcode_ocr(
    upload: DocumentUpload, services: Services = Depends(get_services)
) -> JSONResponse:
    if not services.groq.configured:
        raise HTTPException(
            status_code=500, detail="GROQ_API_KEY is not configured on server"
        )
    base64_data = _require_payload(upload)
    messages = build_barcode_messages(upload.mime_type or "image/jpeg", base64_data)

    try:
        async with services.semaphore:
            content = await asyncio.to_thread(
                services.groq.chat, messages, 0.0, BARCODE_MAX_TOKENS
            )
    except LLMError as exc:
        logger.error("Barcode detection failed: {error}", error=exc)
        raise HTTPException(status_code=500, detail=str(exc))

    result = build_barcode_result(content)
    logger.info("Barcode detected: {code}", code=result.code)
    return JSONResponse(content=result.model_dump())
