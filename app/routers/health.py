# app/routers/health.py

from fastapi import APIRouter

from app.config import get_settings

settings = get_settings()
router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "invoice-reconciler-api",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness check - reports which external services are configured."""
    database_ok = bool(settings.supabase_url and settings.supabase_service_role_key)
    extraction_ok = bool(settings.anthropic_api_key)
    return {
        "status": "ready" if database_ok and extraction_ok else "degraded",
        "checks": {
            "database": "ok" if database_ok else "not_configured",
            "extraction": "ok" if extraction_ok else "not_configured",
        }
    }
