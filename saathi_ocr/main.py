"""FastAPI entrypoint for the Tax Saathi OCR microservice."""

import sys
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from saathi_ocr.api import health, ocr
from saathi_ocr.api.dependencies import Services, build_services
from saathi_ocr.pipeline.config.settings import Settings, get_settings


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def create_app(
    settings: Optional[Settings] = None, services: Optional[Services] = None
) -> FastAPI:
    """Build and configure the FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Tax Saathi OCR Service",
        description=(
            "HTTP API that turns uploaded invoices into structured GST data "
            "(OCR + regex parsing with a Groq LLM fallback)"
        ),
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.services = services or build_services(settings)

    app.include_router(health.router)
    app.include_router(ocr.router)

    @app.get("/")
    async def root():  # pragma: no cover - simple info endpoint
        return {
            "service": "tax-saathi-ocr",
            "docs": "/docs",
            "endpoints": {
                "health": "/api/health",
                "invoice": "/api/ocr/invoice",
                "mindee": "/api/ocr/invoice/mindee",
                "parse_text": "/api/ocr/parse-text",
                "barcode": "/api/ocr/barcode",
            },
        }

    logger.info(
        "OCR service ready (LLM fallback: {enabled})",
        enabled=app.state.services.groq.configured,
    )
    return app


def run_dev() -> None:
    """Helper to start the service in development."""
    import os

    import uvicorn

    uvicorn.run(
        "saathi_ocr.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )


if __name__ == "__main__":
    run_dev()
