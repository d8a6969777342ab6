"""Transactional emails: admin new-booking alert, customer status updates
and password reset links."""

from __future__ import annotations

from limoservice.config import Settings, settings
from limoservice.domain.enums import BookingStatus, PaymentMethod, ServiceType
from limoservice.domain.timezones import format_pickup_time
from limoservice.infrastructure.mailer import Mailer
from limoservice.infrastructure.models import BookingModel, UserModel
from limoservice.infrastructure.templating import render_email

STATUS_EMAILS: dict[BookingStatus, tuple[str, str]] = {
    BookingStatus.CONFIRMED: ("booking_confirmed.html", "Your {site} ride is confirmed"),
    BookingStatus.DECLINED: ("booking_declined.html", "Update on your {site} booking request"),
    BookingStatus.CANCELLED: ("booking_cancelled.html", "Your {site} booking was cancelled"),
    BookingStatus.COMPLETED: ("booking_completed.html", "Thanks for riding with {site}"),
}


def service_label(service_type: ServiceType | str) -> str:
    return ServiceType(service_type).value.replace("_", " ")


class Notifier:
    def __init__(self, mailer: Mailer, config: Settings = settings):
        self.mailer = mailer
        self.config = config

    def _booking_context(self, booking: BookingModel) -> dict:
        base = self.config.site_url.rstrip("/")
        return {
            "site_name": self.config.site_name,
            "booking": booking,
            "service_label": service_label(booking.service_type),
            "payment_method": PaymentMethod(booking.payment_method).value,
            "pickup_time": format_pickup_time(
                booking.pickup_time, self.config.business_timezone
            ),
            "tracking_url": f"{base}/track/{booking.id}",
            "dashboard_url": f"{base}/dashboard",
            "admin_dashboard_url": f"{base}/admin/dashboard",
        }

    async def new_booking_alert(self, booking: BookingModel) -> bool:
        html = render_email("admin_new_booking.html", **self._booking_context(booking))
        return await self.mailer.send(
            self.config.admin_email,
            f"New {self.config.site_name} Booking Alert!",
            html,
        )

    async def status_changed(self, booking: BookingModel) -> bool:
        entry = STATUS_EMAILS.get(BookingStatus(booking.status))
        if entry is None:
            return False
        template, subject = entry
        html = render_email(template, **self._booking_context(booking))
        return await self.mailer.send(
            booking.contact_email, subject.format(site=self.config.site_name), html
        )

    async def password_reset(self, user: UserModel, token: str) -> bool:
        link = f"{self.config.site_url.rstrip('/')}/update-password?token={token}"
        html = render_email(
            "password_reset.html",
            site_name=self.config.site_name,
            name=user.name,
            reset_url=link,
            expires_minutes=self.config.reset_token_expire_minutes,
        )
        return await self.mailer.send(
            user.email, f"Reset your {self.config.site_name} password", html
        )
