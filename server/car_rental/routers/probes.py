"""Infrastructure probes served outside the versioned RPC surface."""

import logging

from fastapi import APIRouter
from sqlalchemy import text

from ..core.config import settings
from ..core.database import engine
from ..core.observability import SERVICE_NAME
from ..workers.manager import worker_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

VERSION = "1.0.0"


async def _database_check() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Readiness database check failed", extra={"error": str(e)})
        return "unavailable"
    return "ok"


@router.get("/health", response_model=dict)
async def liveness() -> dict:
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "environment": settings.environment,
    }


@router.get("/ready", response_model=dict)
async def readiness() -> dict:
    """
    Database reachability and worker liveness.

    Answers 200 either way; ``status`` says whether the service is ready.
    """
    database = await _database_check()
    workers = worker_manager.get_worker_status()
    ready = database == "ok" and all(workers.values())
    return {
        "status": "ready" if ready else "not_ready",
        "service": SERVICE_NAME,
        "checks": {"database": database, "workers": workers},
    }


@router.get("/info", response_model=dict)
async def service_info() -> dict:
    """Booking policy values the storefront renders."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "business_name": settings.business_name,
        "policy": {
            "minimum_rental_hours": settings.minimum_rental_hours,
            "advance_amount": settings.advance_amount,
            "currency": settings.currency,
            "cash_deposit_amount": settings.cash_deposit_amount,
            "km_limit_per_day": settings.km_limit_per_day,
        },
        "features": {
            "email_notifications": bool(settings.resend_api_key),
            "tracing_export": bool(settings.otlp_endpoint),
        },
    }
