"""
Integration tests for the booking, admin, tracking and review endpoints.

Runs the real app over an in-memory SQLite database; Redis, Stripe and
SMTP are mocks from ``conftest``.
"""

from __future__ import annotations

from sqlalchemy import select

import pytest
from httpx import AsyncClient

from limoservice.domain.enums import BookingStatus, PaymentMethod, PaymentStatus
from limoservice.infrastructure.models import BookingModel
from limoservice.infrastructure.payments import PaymentProviderError
from tests.conftest import auth_headers, make_booking


def booking_body(**overrides) -> dict:
    body = {
        "pickup_location": "DFW International Airport, Terminal D",
        "dropoff_location": "The Adolphus Hotel, 1321 Commerce St, Dallas",
        "date_time": "2026-11-02T15:30",
        "user_timezone": "America/Chicago",
        "passengers": 3,
        "contact_name": "Marcus Whitfield",
        "contact_email": "marcus.whitfield@gmail.com",
        "contact_phone": "+1 972 555 0100",
        "payment_method": "cash",
    }
    body.update(overrides)
    return body


async def load_booking(session_factory, booking_id: str) -> BookingModel:
    async with session_factory() as session:
        result = await session.execute(
            select(BookingModel).where(BookingModel.id == booking_id)
        )
        return result.scalar_one()


# ── Health ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ── Create booking ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_guest_cash_booking_is_airport_transfer(client: AsyncClient, mailer, gateway):
    resp = await client.post("/api/v1/bookings", json=booking_body())
    assert resp.status_code == 201
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "Booking confirmed! Cash payment due upon arrival."
    assert data["redirect_url"] is None

    booking = data["booking"]
    assert booking["user_id"] is None
    assert booking["status"] == "pending"
    assert booking["payment_status"] == "pending_cash"
    assert booking["payment_status_label"] == "Cash on Arrival"
    assert booking["service_type"] == "airport_transfer"
    assert booking["total_price"] == 85.0
    assert booking["flat_rate_amount"] == 85.0
    assert booking["car_type"] == "2019 Cadillac Escalade"
    # 15:30 CST -> 21:30 UTC
    assert booking["pickup_time"].startswith("2026-11-02T21:30:00")

    mailer.send.assert_awaited_once()
    assert mailer.send.await_args.args[1] == "New VIP4DFW Booking Alert!"
    gateway.create_checkout_session.assert_not_awaited()


@pytest.mark.asyncio
async def test_city_ride_when_both_ends_mention_airport(client: AsyncClient):
    resp = await client.post(
        "/api/v1/bookings",
        json=booking_body(
            pickup_location="DFW Airport Terminal A", dropoff_location="DFW Airport Terminal E"
        ),
    )
    booking = resp.json()["booking"]
    assert booking["service_type"] == "city_ride"
    assert booking["total_price"] == 100.0
    assert booking["flat_rate_amount"] is None


@pytest.mark.asyncio
async def test_card_booking_redirects_to_checkout(client: AsyncClient, customer, gateway, session_factory):
    resp = await client.post(
        "/api/v1/bookings",
        json=booking_body(payment_method="card"),
        headers=auth_headers(customer),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["message"] == "Redirecting to payment..."
    assert data["redirect_url"] == "https://checkout.stripe.com/c/pay/cs_test_a1B2c3"
    assert data["booking"]["user_id"] == customer.id
    assert data["booking"]["payment_status"] == "unpaid"

    kwargs = gateway.create_checkout_session.await_args.kwargs
    assert kwargs["booking_id"] == data["booking"]["id"]
    assert kwargs["user_id"] == customer.id
    assert kwargs["amount"] == 85.0
    assert kwargs["name"].startswith("airport transfer from DFW International Airport")
    assert kwargs["description"] == "For 3 passengers on November 2, 2026 at 3:30 PM CST"

    stored = await load_booking(session_factory, data["booking"]["id"])
    assert stored.stripe_checkout_session_id == "cs_test_a1B2c3"


@pytest.mark.asyncio
async def test_stripe_failure_marks_payment_failed(client: AsyncClient, gateway, session_factory):
    gateway.create_checkout_session.side_effect = PaymentProviderError("Your card was declined.")
    resp = await client.post("/api/v1/bookings", json=booking_body(payment_method="card"))
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Payment processing error: Your card was declined."

    stored = await load_booking(session_factory, resp.json()["booking_id"])
    assert stored.payment_status is PaymentStatus.FAILED
    assert stored.status is BookingStatus.PENDING


@pytest.mark.asyncio
async def test_booking_survives_email_failure(client: AsyncClient, mailer):
    mailer.send.return_value = False
    resp = await client.post("/api/v1/bookings", json=booking_body())
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_idempotency_key_returns_same_booking(client: AsyncClient, mailer):
    headers = {"Idempotency-Key": "form-submit-7f3a"}
    resp1 = await client.post("/api/v1/bookings", json=booking_body(), headers=headers)
    resp2 = await client.post("/api/v1/bookings", json=booking_body(), headers=headers)
    assert resp1.status_code == 201
    assert resp2.status_code == 200
    assert resp1.json()["booking"]["id"] == resp2.json()["booking"]["id"]
    assert mailer.send.await_count == 1


@pytest.mark.asyncio
async def test_idempotency_key_reused_by_someone_else(client: AsyncClient, customer):
    headers = {"Idempotency-Key": "form-submit-7f3a"}
    await client.post("/api/v1/bookings", json=booking_body(), headers=headers)

    other_contact = booking_body(
        contact_name="Priya Shah", contact_email="priya.shah@gmail.com"
    )
    resp = await client.post("/api/v1/bookings", json=other_contact, headers=headers)
    assert resp.status_code == 409
    assert "Marcus" not in resp.text

    # Same contact, but now signed in as someone else
    resp = await client.post(
        "/api/v1/bookings",
        json=booking_body(),
        headers={**headers, **auth_headers(customer)},
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"pickup_location": "   "},
        {"passengers": 0},
        {"passengers": 15},
        {"contact_email": "not-an-email"},
        {"payment_method": "bitcoin"},
    ],
)
async def test_invalid_booking_rejected(client: AsyncClient, overrides):
    resp = await client.post("/api/v1/bookings", json=booking_body(**overrides))
    assert resp.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["passengers", "contact_phone", "date_time"])
async def test_missing_booking_field_rejected(client: AsyncClient, field):
    body = booking_body()
    del body[field]
    resp = await client.post("/api/v1/bookings", json=body)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_unknown_timezone_rejected(client: AsyncClient):
    resp = await client.post(
        "/api/v1/bookings", json=booking_body(user_timezone="Mars/Olympus_Mons")
    )
    assert resp.status_code == 422


# ── Read bookings ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_bookings_requires_auth(client: AsyncClient):
    resp = await client.get("/api/v1/bookings")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_list_bookings_only_returns_own(client: AsyncClient, db_session, customer):
    mine = await make_booking(db_session, customer)
    await make_booking(db_session, None)
    resp = await client.get("/api/v1/bookings", headers=auth_headers(customer))
    assert resp.status_code == 200
    assert [b["id"] for b in resp.json()] == [mine.id]


@pytest.mark.asyncio
async def test_get_booking_hidden_from_other_users(client: AsyncClient, db_session, customer, admin):
    guest_booking = await make_booking(db_session, None)
    resp = await client.get(f"/api/v1/bookings/{guest_booking.id}", headers=auth_headers(customer))
    assert resp.status_code == 404

    resp = await client.get(f"/api/v1/bookings/{guest_booking.id}", headers=auth_headers(admin))
    assert resp.status_code == 200


# ── Admin ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_admin_endpoints_reject_customers(client: AsyncClient, customer):
    resp = await client.get("/api/v1/admin/bookings", headers=auth_headers(customer))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_filter_and_search(client: AsyncClient, db_session, admin, customer):
    await make_booking(db_session, customer, status=BookingStatus.CONFIRMED)
    await make_booking(db_session, None, status=BookingStatus.PENDING)
    await make_booking(db_session, None, status=BookingStatus.DECLINED)

    resp = await client.get(
        "/api/v1/admin/bookings",
        params=[("status", "pending"), ("status", "confirmed")],
        headers=auth_headers(admin),
    )
    assert resp.status_code == 200
    assert sorted(b["status"] for b in resp.json()) == ["confirmed", "pending"]

    resp = await client.get(
        "/api/v1/admin/bookings", params={"search": "RAMIREZ"}, headers=auth_headers(admin)
    )
    assert [b["contact_name"] for b in resp.json()] == ["Elena Ramirez"]


@pytest.mark.asyncio
async def test_admin_search_treats_wildcards_literally(client: AsyncClient, db_session, admin):
    await make_booking(db_session, None, contact_name="Priya Shah")
    await make_booking(db_session, None, contact_name="Ana 100% Lopez")

    for term, expected in [("%", ["Ana 100% Lopez"]), ("_", [])]:
        resp = await client.get(
            "/api/v1/admin/bookings", params={"search": term}, headers=auth_headers(admin)
        )
        assert [b["contact_name"] for b in resp.json()] == expected


@pytest.mark.asyncio
async def test_admin_status_counts(client: AsyncClient, db_session, admin):
    await make_booking(db_session, None)
    await make_booking(db_session, None, status=BookingStatus.COMPLETED)
    resp = await client.get("/api/v1/admin/bookings/counts", headers=auth_headers(admin))
    data = resp.json()
    assert data["total"] == 2
    assert data["counts"]["pending"] == 1
    assert data["counts"]["completed"] == 1
    assert data["counts"]["cancelled"] == 0


@pytest.mark.asyncio
async def test_confirm_booking_emails_customer(client: AsyncClient, db_session, admin, mailer, redis):
    booking = await make_booking(db_session, None)
    resp = await client.patch(
        f"/api/v1/admin/bookings/{booking.id}/status",
        json={"status": "confirmed"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "confirmed"
    redis.eval.assert_awaited_once()  # lock released
    assert mailer.send.await_args.args[0] == "priya.shah@gmail.com"
    assert mailer.send.await_args.args[1] == "Your VIP4DFW ride is confirmed"


@pytest.mark.asyncio
async def test_cancel_records_reason(client: AsyncClient, db_session, admin):
    booking = await make_booking(db_session, None, status=BookingStatus.CONFIRMED)
    resp = await client.patch(
        f"/api/v1/admin/bookings/{booking.id}/status",
        json={"status": "cancelled", "cancellation_reason": "Vehicle breakdown"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 200
    assert resp.json()["cancellation_reason"] == "Vehicle breakdown"


@pytest.mark.asyncio
async def test_illegal_transition_conflict(client: AsyncClient, db_session, admin):
    booking = await make_booking(db_session, None)
    resp = await client.patch(
        f"/api/v1/admin/bookings/{booking.id}/status",
        json={"status": "completed"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_status_update_conflicts_while_locked(client: AsyncClient, db_session, admin, redis):
    booking = await make_booking(db_session, None)
    redis.set.return_value = False
    resp = await client.patch(
        f"/api/v1/admin/bookings/{booking.id}/status",
        json={"status": "confirmed"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_status_update_unknown_booking(client: AsyncClient, admin):
    resp = await client.patch(
        "/api/v1/admin/bookings/does-not-exist/status",
        json={"status": "confirmed"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_cash_collected_marks_paid(client: AsyncClient, db_session, admin):
    booking = await make_booking(db_session, None, status=BookingStatus.COMPLETED)
    resp = await client.patch(
        f"/api/v1/admin/bookings/{booking.id}/payment-status",
        json={"payment_status": "paid"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 200
    assert resp.json()["payment_status_label"] == "Credit Card (Paid)"


@pytest.mark.asyncio
async def test_paid_booking_cannot_revert_to_unpaid(client: AsyncClient, db_session, admin):
    booking = await make_booking(
        db_session,
        None,
        payment_method=PaymentMethod.CARD,
        payment_status=PaymentStatus.PAID,
    )
    resp = await client.patch(
        f"/api/v1/admin/bookings/{booking.id}/payment-status",
        json={"payment_status": "unpaid"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 409


# ── Driver location & tracking ────────────────────────────────────────


@pytest.mark.asyncio
async def test_driver_location_only_for_confirmed(client: AsyncClient, db_session, admin):
    booking = await make_booking(db_session, None)
    resp = await client.put(
        f"/api/v1/admin/bookings/{booking.id}/driver-location",
        json={"latitude": 32.8998, "longitude": -97.0403},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_tracking_shows_location_while_confirmed(client: AsyncClient, db_session, admin):
    booking = await make_booking(db_session, None, status=BookingStatus.CONFIRMED)
    resp = await client.put(
        f"/api/v1/admin/bookings/{booking.id}/driver-location",
        json={"latitude": 32.8998, "longitude": -97.0403},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 200

    resp = await client.get(f"/api/v1/track/{booking.id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["driver_latitude"] == 32.8998
    assert data["driver_longitude"] == -97.0403
    assert data["driver_location_updated_at"] is not None
    assert data["poll_interval_seconds"] == 5


@pytest.mark.asyncio
async def test_tracking_hides_location_after_completion(client: AsyncClient, db_session):
    booking = await make_booking(
        db_session,
        None,
        status=BookingStatus.COMPLETED,
        driver_latitude=32.8998,
        driver_longitude=-97.0403,
    )
    data = (await client.get(f"/api/v1/track/{booking.id}")).json()
    assert data["status"] == "completed"
    assert data["driver_latitude"] is None
    assert data["driver_longitude"] is None


@pytest.mark.asyncio
async def test_tracking_unknown_booking(client: AsyncClient):
    resp = await client.get("/api/v1/track/00000000-0000-0000-0000-000000000000")
    assert resp.status_code == 404


# ── Reviews ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_review_flow(client: AsyncClient, db_session, customer, admin):
    booking = await make_booking(db_session, customer, status=BookingStatus.COMPLETED)

    resp = await client.post(
        f"/api/v1/bookings/{booking.id}/review",
        json={"rating": 5, "message": "Immaculate car, friendly chauffeur."},
        headers=auth_headers(customer),
    )
    assert resp.status_code == 201
    assert resp.json()["review_is_published"] is False
    assert (await client.get("/api/v1/reviews")).json() == []

    resp = await client.post(
        f"/api/v1/admin/bookings/{booking.id}/review/publication",
        headers=auth_headers(admin),
    )
    assert resp.json()["is_published"] is True

    reviews = (await client.get("/api/v1/reviews")).json()
    assert len(reviews) == 1
    assert reviews[0]["author"] == "Elena"
    assert reviews[0]["rating"] == 5


@pytest.mark.asyncio
async def test_admin_cannot_review_customer_ride(client: AsyncClient, db_session, customer, admin):
    booking = await make_booking(db_session, customer, status=BookingStatus.COMPLETED)
    resp = await client.post(
        f"/api/v1/bookings/{booking.id}/review",
        json={"rating": 1, "message": "Posted by staff"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_second_review_rejected(client: AsyncClient, db_session, customer):
    booking = await make_booking(
        db_session, customer, status=BookingStatus.COMPLETED, review_rating=4
    )
    resp = await client.post(
        f"/api/v1/bookings/{booking.id}/review",
        json={"rating": 5},
        headers=auth_headers(customer),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_review_requires_completed_ride(client: AsyncClient, db_session, customer):
    booking = await make_booking(db_session, customer, status=BookingStatus.CONFIRMED)
    resp = await client.post(
        f"/api/v1/bookings/{booking.id}/review",
        json={"rating": 5},
        headers=auth_headers(customer),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_review_rating_bounds(client: AsyncClient, db_session, customer):
    booking = await make_booking(db_session, customer, status=BookingStatus.COMPLETED)
    resp = await client.post(
        f"/api/v1/bookings/{booking.id}/review",
        json={"rating": 6},
        headers=auth_headers(customer),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_toggle_publication_without_review(client: AsyncClient, db_session, admin):
    booking = await make_booking(db_session, None, status=BookingStatus.COMPLETED)
    resp = await client.post(
        f"/api/v1/admin/bookings/{booking.id}/review/publication",
        headers=auth_headers(admin),
    )
    assert resp.status_code == 404


# ── Pages ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_home_page_shows_fares_and_reviews(client: AsyncClient, db_session, customer):
    await make_booking(
        db_session,
        customer,
        status=BookingStatus.COMPLETED,
        review_rating=5,
        review_message="Best ride to DFW we have had.",
        review_is_published=True,
    )
    resp = await client.get("/")
    assert resp.status_code == 200
    assert "$85" in resp.text
    assert "Best ride to DFW we have had." in resp.text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path",
    [
        "/about",
        "/policy",
        "/booking-success",
        "/track/abc",
        "/login",
        "/forgot-password",
        "/dashboard",
        "/admin/dashboard",
        "/update-password",
    ],
)
async def test_static_pages_render(client: AsyncClient, path):
    resp = await client.get(path)
    assert resp.status_code == 200
    assert "VIP4DFW" in resp.text


@pytest.mark.asyncio
async def test_booking_success_page_summarises_booking(client: AsyncClient, db_session):
    booking = await make_booking(db_session, None)
    resp = await client.get("/booking-success", params={"booking_id": booking.id})
    assert resp.status_code == 200
    assert "The Adolphus Hotel, Dallas" in resp.text
    assert "Cash on Arrival" in resp.text


@pytest.mark.asyncio
async def test_stripe_return_lands_on_dashboard(client: AsyncClient, db_session):
    booking = await make_booking(db_session, None)
    resp = await client.get(
        "/dashboard", params={"payment_success": "true", "booking_id": booking.id}
    )
    assert resp.status_code == 200
    assert "Payment received" in resp.text
    assert booking.id in resp.text

    resp = await client.get("/dashboard", params={"payment_cancelled": "true"})
    assert "Payment was cancelled" in resp.text


@pytest.mark.asyncio
async def test_emailed_reset_link_opens_reset_form(client: AsyncClient, customer, mailer):
    await client.post("/api/v1/auth/forgot-password", json={"email": customer.email})
    html = mailer.send.await_args.args[2]
    link = html.split('href="', 1)[1].split('"', 1)[0].replace("&amp;", "&")
    path = link.split("://", 1)[1].split("/", 1)[1]

    resp = await client.get("/" + path)
    assert resp.status_code == 200
    assert "/api/v1/auth/reset-password" in resp.text
    token = path.split("token=", 1)[1]
    assert f'value="{token}"' in resp.text
