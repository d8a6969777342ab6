"""
FastAPI application factory.

* Registers the JSON API under ``/api/v1`` and the public HTML pages.
* Maps domain / service errors to HTTP status codes.
* Applies rate-limiting middleware.
* Closes the Redis pool and disposes the DB engine on shutdown.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from limoservice.api.middleware import limiter
from limoservice.api.routes import (
    admin,
    auth,
    bookings,
    pages,
    reviews,
    tips,
    tracking,
    webhooks,
)
from limoservice.config import settings
from limoservice.domain.entities import InvalidStateTransition
from limoservice.domain.timezones import UnknownTimezone
from limoservice.infrastructure.database import engine
from limoservice.infrastructure.payments import PaymentProviderError
from limoservice.infrastructure.redis_client import close_pool
from limoservice.services.errors import (
    BookingBusy,
    BookingNotFound,
    InvalidRequest,
    ReviewNotFound,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s booking service starting", settings.site_name)
    yield
    await close_pool()
    await engine.dispose()


def _error(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


async def _payment_provider_error(request: Request, exc: PaymentProviderError) -> JSONResponse:
    logger.error("Payment provider error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=502, content={"detail": f"Payment processing error: {exc}"}
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{settings.site_name} Booking API",
        description=(
            "Luxury car-service bookings with flat-rate airport fares, "
            "Stripe checkout, driver location sharing, reviews and tips."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain / service errors
    app.add_exception_handler(InvalidStateTransition, _error(409))
    app.add_exception_handler(InvalidRequest, _error(409))
    app.add_exception_handler(BookingBusy, _error(409))
    app.add_exception_handler(UnknownTimezone, _error(422))
    app.add_exception_handler(BookingNotFound, _error(404))
    app.add_exception_handler(ReviewNotFound, _error(404))
    app.add_exception_handler(PaymentProviderError, _payment_provider_error)

    # Routers
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(reviews.router, prefix="/api/v1")
    app.include_router(tips.router, prefix="/api/v1")
    app.include_router(tracking.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")
    app.include_router(webhooks.router, prefix="/api/v1")
    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(pages.router)

    return app
