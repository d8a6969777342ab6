"""
Public HTML pages
=================

GET /                  -- home: fares, fleet and published reviews
GET /about             -- about the company
GET /policy            -- booking, cancellation and payment policy
GET /booking-success   -- confirmation after booking / Stripe checkout
GET /track/{id}        -- live ride tracking (polls the JSON API)
GET /login             -- sign in; the token is kept in localStorage
GET /forgot-password   -- request a reset link
GET /update-password   -- reset-link target, posts to the reset API
GET /dashboard         -- the customer's bookings; Stripe returns here
GET /admin/dashboard   -- admin list, filters and status changes

The account pages render a shell and call the JSON API from the browser
with the bearer token, so they need no server-side session.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from limoservice.api.dependencies import get_booking_service
from limoservice.api.routes.reviews import public_review
from limoservice.config import settings
from limoservice.domain.enums import BookingStatus, payment_status_label
from limoservice.domain.timezones import format_pickup_time
from limoservice.infrastructure.templating import page_templates
from limoservice.services.bookings import BookingService
from limoservice.services.errors import BookingNotFound
from limoservice.services.notifications import service_label

router = APIRouter(tags=["pages"], include_in_schema=False)


def _context(**extra) -> dict:
    return {
        "site_name": settings.site_name,
        "airport_fare": settings.airport_transfer_fare,
        "city_fare": settings.city_ride_fare,
        "car_type": settings.default_car_type,
        "max_passengers": settings.max_passengers,
        **extra,
    }


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, service: BookingService = Depends(get_booking_service)):
    reviews = [public_review(b) for b in await service.published_reviews(6)]
    return page_templates.TemplateResponse(request, "home.html", _context(reviews=reviews))


@router.get("/about", response_class=HTMLResponse)
async def about(request: Request):
    return page_templates.TemplateResponse(request, "about.html", _context())


@router.get("/policy", response_class=HTMLResponse)
async def policy(request: Request):
    return page_templates.TemplateResponse(request, "policy.html", _context())


@router.get("/booking-success", response_class=HTMLResponse)
async def booking_success(
    request: Request,
    booking_id: Optional[str] = None,
    service: BookingService = Depends(get_booking_service),
):
    summary = None
    if booking_id:
        try:
            booking = await service.get(booking_id)
        except BookingNotFound:
            booking = None
        if booking is not None:
            summary = {
                "id": booking.id,
                "pickup_location": booking.pickup_location,
                "dropoff_location": booking.dropoff_location,
                "pickup_time": format_pickup_time(
                    booking.pickup_time, settings.business_timezone
                ),
                "service_label": service_label(booking.service_type),
                "total_price": booking.total_price,
                "payment": payment_status_label(booking.payment_status),
            }
    return page_templates.TemplateResponse(
        request, "booking_success.html", _context(booking=summary)
    )


@router.get("/track/{booking_id}", response_class=HTMLResponse)
async def track(request: Request, booking_id: str):
    return page_templates.TemplateResponse(
        request,
        "track.html",
        _context(
            booking_id=booking_id,
            api_url=f"/api/v1/track/{booking_id}",
            poll_ms=settings.tracking_poll_seconds * 1000,
        ),
    )


@router.get("/login", response_class=HTMLResponse)
async def login(request: Request):
    return page_templates.TemplateResponse(
        request, "login.html", _context(signin_url="/api/v1/auth/signin")
    )


@router.get("/forgot-password", response_class=HTMLResponse)
async def forgot_password(request: Request):
    return page_templates.TemplateResponse(
        request, "forgot_password.html", _context(forgot_url="/api/v1/auth/forgot-password")
    )


@router.get("/update-password", response_class=HTMLResponse)
async def update_password(request: Request, token: Optional[str] = None):
    return page_templates.TemplateResponse(
        request,
        "update_password.html",
        _context(token=token, reset_url="/api/v1/auth/reset-password"),
    )


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    booking_id: Optional[str] = None,
    payment_success: bool = False,
    payment_cancelled: bool = False,
):
    return page_templates.TemplateResponse(
        request,
        "dashboard.html",
        _context(
            booking_id=booking_id,
            payment_success=payment_success,
            payment_cancelled=payment_cancelled,
            bookings_url="/api/v1/bookings",
        ),
    )


@router.get("/admin/dashboard", response_class=HTMLResponse)
async def admin_dashboard(request: Request):
    return page_templates.TemplateResponse(
        request,
        "admin_dashboard.html",
        _context(admin_url="/api/v1/admin", statuses=[s.value for s in BookingStatus]),
    )
