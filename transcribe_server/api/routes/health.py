"""
Health and liveness endpoints for transcribe-server.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from transcribe_server import __version__

router = APIRouter()

LIVENESS_MESSAGE = "Backend is running!"


@router.get("/", response_class=PlainTextResponse)
async def liveness() -> str:
    """Plaintext liveness string."""
    return LIVENESS_MESSAGE


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "transcribe-server", "version": __version__}
