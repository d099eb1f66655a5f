"""FastAPI routers package."""

from .admin import router as admin_router
from .booking import router as booking_router
from .fleet import router as fleet_router
from .health import router as health_router
from .metrics import router as metrics_router
from .probes import router as probes_router

__all__ = [
    "admin_router",
    "booking_router",
    "fleet_router",
    "health_router",
    "metrics_router",
    "probes_router",
]
