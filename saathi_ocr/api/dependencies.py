"""Wiring of provider clients and the parser, shared by the API routers."""

import asyncio
from dataclasses import dataclass
from typing import Optional

import requests
from fastapi import Request

from saathi_ocr.pipeline.config.settings import Settings
from saathi_ocr.pipeline.llm.groq_client import GroqClient
from saathi_ocr.pipeline.ocr.mindee import MindeeInvoiceClient
from saathi_ocr.pipeline.ocr.ocr_space import OCRSpaceClient
from saathi_ocr.pipeline.service.llm_extractor import LLMInvoiceExtractor
from saathi_ocr.pipeline.service.orchestrator import InvoiceTextParser


@dataclass
class Services:
    settings: Settings
    ocr_space: OCRSpaceClient
    mindee: MindeeInvoiceClient
    groq: GroqClient
    parser: InvoiceTextParser
    # bounds parallel pipeline runs so the providers are not flooded
    semaphore: asyncio.Semaphore


def build_services(
    settings: Settings, session: Optional[requests.Session] = None
) -> Services:
    """
    Create every collaborator from explicit settings.

    Without ``session`` the clients call the module-level ``requests``
    functions, which open a fresh session per request; pipeline runs happen
    in worker threads and a ``requests.Session`` is not safe to share there.
    """
    groq = GroqClient.from_settings(settings, session=session)
    return Services(
        settings=settings,
        ocr_space=OCRSpaceClient.from_settings(settings, session=session),
        mindee=MindeeInvoiceClient.from_settings(settings, session=session),
        groq=groq,
        parser=InvoiceTextParser(llm_extractor=LLMInvoiceExtractor(groq)),
        semaphore=asyncio.Semaphore(max(1, settings.max_concurrency)),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
