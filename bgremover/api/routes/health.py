from fastapi import APIRouter

from bgremover.core.config import settings

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness check."""
    return {"status": "healthy"}


@router.get("/ready")
async def ready():
    """Readiness check; reports whether a Gemini API key is configured."""
    return {
        "status": "ready",
        "gemini_configured": bool(settings.gemini_api_key),
    }
