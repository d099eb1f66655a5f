"""Health check router."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.dependencies import get_booking_registry, get_notifier
from ..models.base import utcnow
from ..schemas.health import HealthResponse, HealthStatus
from ..services.booking_store import BookingSessionRegistry
from ..services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/health", tags=["health"])


@router.post("/ping", response_model=HealthResponse)
async def health_ping(
    registry: BookingSessionRegistry = Depends(get_booking_registry),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> JSONResponse:
    """
    Health check endpoint.

    Returns current service status, timestamp and in-memory queue sizes.
    """
    pending = notifier.queue.qsize()
    response_data = HealthResponse(
        status=HealthStatus.DEGRADED if notifier.queue.full() else HealthStatus.HEALTHY,
        timestamp=utcnow(),
        version="1.0.0",
        open_booking_sessions=len(registry),
        pending_notifications=pending,
    )

    logger.debug(
        "Health check requested",
        extra={
            "status": response_data.status.value,
            "pending_notifications": pending,
        }
    )

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )
