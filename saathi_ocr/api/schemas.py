"""Request bodies accepted by the OCR endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentUpload(BaseModel):
    """A document sent as base64 JSON (the browser client's upload format)."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: Optional[str] = Field(default=None, alias="fileName")
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    # optional here so a missing payload is reported as 400, not 422
    base64_data: Optional[str] = Field(default=None, alias="base64Data")


class ParseTextRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    ocr_succeeded: bool = Field(default=True, alias="ocrSucceeded")
