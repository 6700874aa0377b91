"""Exceptions raised by the pipeline and its provider clients."""


class PipelineError(Exception):
    """Base class for every pipeline failure."""


class OCRError(PipelineError):
    """
    The OCR provider failed or returned no usable text.

    ``status_code`` is the HTTP status the API reports for this failure:
    500 by default, the provider's own status when it rejected the call.
    """

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class OCRConfigurationError(OCRError):
    """An OCR provider was called without credentials."""


class LLMError(PipelineError):
    """The Groq chat-completions call failed or returned nothing usable."""
