"""
Runtime configuration for the OCR service.

Values come from environment variables (or a local .env file). The settings
object is built once by the application factory and handed explicitly to
the clients that need it; pipeline code never reads the environment itself.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_GROQ_MODEL = "meta-llama/llama-4-scout-17b-16e-instruct"


class Settings(BaseSettings):
    """Service settings, one field per environment variable."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # OCR providers
    ocr_space_api_key: Optional[str] = None
    ocr_space_url: str = "https://api.ocr.space/parse/image"
    mindee_api_key: Optional[str] = None
    mindee_url: str = (
        "https://api.mindee.net/v1/products/mindee/invoices/v4/predict"
    )

    # Groq (OpenAI-compatible chat completions)
    groq_api_key: Optional[str] = None
    groq_base_url: str = DEFAULT_GROQ_BASE_URL
    groq_model: str = DEFAULT_GROQ_MODEL

    # Runtime
    http_timeout_seconds: float = 60.0
    max_concurrency: int = 4
    log_level: str = "INFO"
    ping_message: str = "ping"


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
