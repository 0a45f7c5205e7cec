# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# These are the only endpoints that don't require authentication.
# =============================================================================

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import settings
from lib.supabase_client import SupabaseClient

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response with the database probe result."""
    status: str
    database: str
    timestamp: str
    environment: str
    version: str


class LivenessResponse(BaseModel):
    """Liveness check response."""
    status: str
    timestamp: str


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Probes the database with a one-row read. Returns 503 when the
    database is unreachable so load balancers take the instance out.
    """
    try:
        client = SupabaseClient.get_client()
        client.table("currencies").select("id").limit(1).execute()
        database = "healthy"
    except Exception as e:
        database = f"unhealthy: {str(e)[:50]}"

    body = HealthResponse(
        status="healthy" if database == "healthy" else "unhealthy",
        database=database,
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.ENVIRONMENT,
        version="1.0.0",
    )
    return JSONResponse(status_code=200 if database == "healthy" else 503, content=body.model_dump())


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """
    Liveness check endpoint.

    Returns whether the service process is alive.
    Used by Kubernetes/Docker for restart decisions.
    """
    return LivenessResponse(
        status="alive",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
