"""
Health check endpoints.
"""
from fastapi import APIRouter

from freight_ai.core.config import get_settings
from freight_ai.services.ai.llm_client import get_model_client

router = APIRouter()


@router.get("")
async def health_check():
    """Basic liveness check."""
    return {
        "status": "ok",
        "message": "API is running",
    }


@router.get("/model")
async def model_health():
    """
    Model provider readiness.

    Reports whether a credential is configured and the provider circuit
    breaker state. Does not call the provider.
    """
    settings = get_settings()
    breaker = get_model_client().circuit_breaker.get_metrics()
    configured = settings.api_key is not None
    available = configured and breaker["state"] != "open"
    return {
        "status": "ok" if available else "unavailable",
        "api_key_configured": configured,
        "model": settings.model,
        "verify_model": settings.verify_model,
        "circuit_breaker": breaker,
    }
