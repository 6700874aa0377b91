"""Health and ping endpoints for container monitoring."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/api", tags=["monitoring"])


@router.get("/health")
async def health_check() -> JSONResponse:
    """
    Basic health check endpoint for Docker healthcheck.

    Returns:
        Simple status response indicating the service is running.
    """
    return JSONResponse(content={"status": "ok"})


@router.get("/ping")
async def ping(request: Request) -> JSONResponse:
    return JSONResponse(content={"message": request.app.state.settings.ping_message})
