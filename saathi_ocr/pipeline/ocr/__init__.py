from .mindee import MindeeInvoiceClient
from .ocr_space import OCRResult, OCRSpaceClient

__all__ = ["MindeeInvoiceClient", "OCRResult", "OCRSpaceClient"]
