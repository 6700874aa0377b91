"""
OCR.space client.

Sends a base64 image/PDF to the OCR.space parse endpoint (engine 2) and
returns the raw text with the provider's parse-success flag.
"""

from dataclasses import dataclass
from typing import Optional

import requests
from loguru import logger

from saathi_ocr.pipeline.config.settings import Settings
from saathi_ocr.pipeline.errors import OCRConfigurationError, OCRError

DEFAULT_OCR_SPACE_URL = "https://api.ocr.space/parse/image"
DEFAULT_MIME_TYPE = "image/jpeg"


@dataclass
class OCRResult:
    text: str
    # True when OCR.space reports FileParseExitCode == 1 (full success)
    success: bool


class OCRSpaceClient:
    def __init__(
        self,
        api_key: Optional[str],
        url: str = DEFAULT_OCR_SPACE_URL,
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
    ) -> "OCRSpaceClient":
        return cls(
            api_key=settings.ocr_space_api_key,
            url=settings.ocr_space_url,
            timeout=settings.http_timeout_seconds,
            session=session,
        )

    def extract_text(self, base64_data: str, mime_type: Optional[str] = None) -> OCRResult:
        """
        Run OCR on a base64-encoded document.

        Args:
            base64_data: Document bytes, base64 encoded (no data URI prefix)
            mime_type: MIME type used to build the data URI

        Returns:
            OCRResult with the parsed text

        Raises:
            OCRConfigurationError: If no API key is configured
            OCRError: If the provider fails or returns no text
        """
        if not self.api_key:
            raise OCRConfigurationError("OCR_SPACE_API_KEY is not configured on server")

        form = {
            "apikey": self.api_key,
            "base64Image": f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{base64_data}",
            "language": "eng",
            "isOverlayRequired": "false",
            "OCREngine": "2",
        }

        try:
            response = self.session.post(self.url, data=form, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise OCRError(f"OCR.space request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise OCRError(
                f"OCR.space returned a non-JSON response ({response.status_code})"
            ) from exc

        if not response.ok or data.get("IsErroredOnProcessing"):
            messages = data.get("ErrorMessage") or []
            if isinstance(messages, str):
                messages = [messages]
            detail = (
                (messages[0] if messages else None)
                or data.get("ErrorDetails")
                or "OCR.space processing failed"
            )
            logger.error("OCR.space error: {detail}", detail=detail)
            raise OCRError(detail)

        results = data.get("ParsedResults") or []
        first = results[0] if results else {}
        text = first.get("ParsedText") or ""
        if not text.strip():
            raise OCRError("No text extracted from image")

        success = first.get("FileParseExitCode") == 1
        logger.info(
            "OCR.space extracted {chars} chars (full success: {success})",
            chars=len(text),
            success=success,
        )
        return OCRResult(text=text, success=success)
