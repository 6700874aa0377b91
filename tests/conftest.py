import json
from typing import Any, List, Optional

import pytest
import requests

from saathi_ocr.pipeline.config.settings import Settings


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; replays queued responses in order."""

    def __init__(self, *responses: Any):
        self.responses: List[Any] = list(responses)
        self.calls: List[dict] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected POST to {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def chat_response(content: str) -> FakeResponse:
    return FakeResponse(200, {"choices": [{"message": {"role": "assistant", "content": content}}]})


def fixed_clock() -> float:
    return 1720770000.5


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ocr_space_api_key="ocr-key",
        mindee_api_key="mindee-key",
        groq_api_key="groq-key",
        max_concurrency=2,
        log_level="DEBUG",
    )


@pytest.fixture
def connection_error() -> Exception:
    return requests.exceptions.ConnectionError("connection refused")
