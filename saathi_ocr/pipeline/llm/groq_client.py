"""
LLM client for Groq/OpenAI-compatible API calls.

This module handles communication with the chat completions endpoint.
Each call is a single attempt: callers decide what a failure means
(the invoice parser falls back to its regex result, the barcode route
reports an error).
"""

from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from saathi_ocr.pipeline.config.settings import (
    DEFAULT_GROQ_BASE_URL,
    DEFAULT_GROQ_MODEL,
    Settings,
)
from saathi_ocr.pipeline.errors import LLMError


class GroqClient:
    """Thin wrapper over ``POST {base_url}/chat/completions``."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_GROQ_BASE_URL,
        model: str = DEFAULT_GROQ_MODEL,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_GROQ_BASE_URL).rstrip("/")
        self.model = model
        self.timeout = timeout
        self.session = session or requests

    @classmethod
    def from_settings(
        cls, settings: Settings, session: Optional[requests.Session] = None
    ) -> "GroqClient":
        return cls(
            api_key=settings.groq_api_key,
            base_url=settings.groq_base_url,
            model=settings.groq_model,
            timeout=settings.http_timeout_seconds,
            session=session,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def chat(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.0,
        max_tokens: int = 2000,
    ) -> str:
        """
        Call the Groq chat completion endpoint once.

        Args:
            messages: Conversation in OpenAI format [{"role": ..., "content": ...}]
            temperature: Controls randomness (0.0 = deterministic)
            max_tokens: Maximum tokens in the response

        Returns:
            Content of ``choices[0].message.content``

        Raises:
            LLMError: If the key is missing, the request fails, or the
                response has no message content
        """
        if not self.configured:
            raise LLMError("GROQ_API_KEY is not configured")

        url = f"{self.base_url}/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        body = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        logger.debug("Calling Groq chat API model={model}", model=self.model)
        try:
            response = self.session.post(
                url, headers=headers, json=body, timeout=self.timeout
            )
        except requests.exceptions.RequestException as exc:
            raise LLMError(f"Groq request failed: {exc}") from exc

        if response.status_code != 200:
            logger.error(
                "Groq API error: {code} - {body}",
                code=response.status_code,
                body=response.text,
            )
            raise LLMError(f"Groq API error: {response.status_code}")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMError("Groq response did not contain message content") from exc

        content = content or ""
        if not isinstance(content, str):
            raise LLMError(
                f"Groq message content is {type(content).__name__}, expected text"
            )
        logger.debug("Groq response received: {chars} chars", chars=len(content))
        return content
