"""Initial schema: users and bookings.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column(
            "role",
            sa.Enum("user", "admin", name="userrole"),
            server_default="user",
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column("pickup_location", sa.String(500), nullable=False),
        sa.Column("dropoff_location", sa.String(500), nullable=False),
        sa.Column("pickup_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("num_passengers", sa.Integer, server_default="1", nullable=False),
        sa.Column("contact_name", sa.String(120), nullable=False),
        sa.Column("contact_email", sa.String(255), nullable=False),
        sa.Column("contact_phone", sa.String(40), nullable=False),
        sa.Column("custom_message", sa.Text, nullable=True),
        sa.Column("car_type", sa.String(80), nullable=True),
        sa.Column(
            "service_type",
            sa.Enum("airport_transfer", "city_ride", name="servicetype"),
            nullable=False,
        ),
        sa.Column("flat_rate_amount", sa.Float, nullable=True),
        sa.Column("total_price", sa.Float, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "confirmed",
                "declined",
                "completed",
                "cancelled",
                name="bookingstatus",
            ),
            server_default="pending",
            nullable=False,
        ),
        sa.Column(
            "payment_method",
            sa.Enum("cash", "card", name="paymentmethod"),
            nullable=False,
        ),
        sa.Column(
            "payment_status",
            sa.Enum("unpaid", "pending_cash", "paid", "failed", name="paymentstatus"),
            server_default="unpaid",
            nullable=False,
        ),
        sa.Column("stripe_checkout_session_id", sa.String(255), nullable=True),
        sa.Column("idempotency_key", sa.String(64), unique=True, nullable=True),
        sa.Column("cancellation_reason", sa.Text, nullable=True),
        sa.Column("driver_latitude", sa.Float, nullable=True),
        sa.Column("driver_longitude", sa.Float, nullable=True),
        sa.Column(
            "driver_location_updated_at", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column("review_rating", sa.Integer, nullable=True),
        sa.Column("review_message", sa.Text, nullable=True),
        sa.Column(
            "review_is_published",
            sa.Boolean,
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tip_amount", sa.Float, nullable=True),
        sa.Column(
            "tip_status",
            sa.Enum("pending", "paid", "failed", "cancelled", name="tipstatus"),
            nullable=True,
        ),
        sa.Column("tip_payment_intent_id", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "review_rating IS NULL OR review_rating BETWEEN 1 AND 5",
            name="ck_bookings_review_rating",
        ),
    )
    op.create_index("idx_bookings_status", "bookings", ["status"])
    op.create_index("idx_bookings_user", "bookings", ["user_id"])
    op.create_index("idx_bookings_contact_email", "bookings", ["contact_email"])
    op.create_index("idx_bookings_pickup_time", "bookings", ["pickup_time"])
    op.create_index("idx_bookings_idempotency", "bookings", ["idempotency_key"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS tipstatus")
    op.execute("DROP TYPE IF EXISTS paymentstatus")
    op.execute("DROP TYPE IF EXISTS paymentmethod")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
    op.execute("DROP TYPE IF EXISTS servicetype")
    op.execute("DROP TYPE IF EXISTS userrole")
