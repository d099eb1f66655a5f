"""Application factory for the car rental booking API."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.database import close_db, engine, init_db
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_structured_logging,
    setup_tracing,
)
from .routers import admin, booking, fleet, health, metrics, probes
from .services.booking_store import SESSION_HEADER
from .workers.manager import worker_manager

setup_structured_logging()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Tracing, schema and the notification worker live as long as the app."""
    logger.info("Starting %s", SERVICE_NAME, extra={"environment": settings.environment})

    try:
        setup_tracing(SERVICE_NAME)
        instrument_sqlalchemy(engine)
        await init_db()
        await worker_manager.start_all()
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    try:
        await worker_manager.stop_all()
        await close_db()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")

    logger.info("%s stopped", SERVICE_NAME)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Car Rental Booking API",
        description="Fleet availability with tiered pricing, a step-gated booking flow "
                    "and advance payment handoff",
        version=probes.VERSION,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", SESSION_HEADER, "traceparent", "tracestate"],
    )
    setup_middleware(app)
    instrument_fastapi(app)

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    for module in (probes, health, booking, fleet, admin, metrics):
        app.include_router(module.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "car_rental.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
