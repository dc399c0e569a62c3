"""initial booking platform schema

Revision ID: 0001_initial_booking_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001_initial_booking_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _id():
    return sa.Column("id", sa.String(length=36), nullable=False)


def _created_at(nullable=False):
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=nullable)


def upgrade() -> None:
    """Upgrade schema."""
    # ---------- fleet ----------
    op.create_table(
        "vehicle_types",
        _id(),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("passenger_capacity", sa.Integer(), nullable=False),
        sa.Column("luggage_capacity", sa.Integer(), nullable=False),
        sa.Column("minimum_fare", sa.Numeric(10, 2), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_vehicle_types")),
    )
    op.create_index(op.f("ix_vehicle_types_name"), "vehicle_types", ["name"], unique=False)

    op.create_table(
        "vehicles",
        _id(),
        sa.Column("vehicle_type", sa.String(length=64), nullable=False),
        sa.Column("plate_number", sa.String(length=32), nullable=True),
        sa.Column("status", sa.String(length=24), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("mileage", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_vehicles")),
    )
    op.create_index(op.f("ix_vehicles_vehicle_type"), "vehicles", ["vehicle_type"], unique=False)

    op.create_table(
        "drivers",
        _id(),
        sa.Column("first_name", sa.String(length=64), nullable=False),
        sa.Column("last_name", sa.String(length=64), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("status", sa.String(length=24), nullable=False),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False),
        sa.Column("vehicle_id", sa.String(length=36), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_drivers")),
    )

    # ---------- pricing ----------
    op.create_table(
        "pricing_rules",
        _id(),
        sa.Column("origin", sa.String(length=128), nullable=False),
        sa.Column("destination", sa.String(length=255), nullable=False),
        sa.Column("zone", sa.String(length=32), nullable=True),
        sa.Column("vehicle_type_id", sa.String(length=36), nullable=False),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("no_discount_allowed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ["vehicle_type_id"], ["vehicle_types.id"],
            name=op.f("fk_pricing_rules_vehicle_type_id_vehicle_types"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_pricing_rules")),
    )
    op.create_index("ix_pricing_rules_route", "pricing_rules", ["origin", "destination", "vehicle_type_id"], unique=False)

    op.create_table(
        "global_discount_settings",
        _id(),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_global_discount_settings")),
    )

    op.create_table(
        "hotel_zones",
        _id(),
        sa.Column("hotel_name", sa.String(length=255), nullable=False),
        sa.Column("zone_code", sa.String(length=32), nullable=False),
        sa.Column("search_terms", JSON, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_hotel_zones")),
    )

    # ---------- customers / partners ----------
    op.create_table(
        "customers",
        _id(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=64), nullable=False),
        sa.Column("last_name", sa.String(length=128), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("total_bookings", sa.Integer(), nullable=False),
        sa.Column("total_spent", sa.Numeric(12, 2), nullable=False),
        sa.Column("no_show_count", sa.Integer(), nullable=False),
        sa.Column("last_booking_date", sa.Date(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_customers")),
    )
    op.create_index(op.f("ix_customers_email"), "customers", ["email"], unique=True)

    op.create_table(
        "customer_activity_log",
        _id(),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("activity_type", sa.String(length=32), nullable=False),
        sa.Column("details", JSON, nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["customer_id"], ["customers.id"],
            name=op.f("fk_customer_activity_log_customer_id_customers"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_customer_activity_log")),
    )
    op.create_index(op.f("ix_customer_activity_log_customer_id"), "customer_activity_log", ["customer_id"], unique=False)

    op.create_table(
        "partners",
        _id(),
        sa.Column("business_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("payment_terms", sa.String(length=32), nullable=False),
        sa.Column("total_earnings", sa.Numeric(12, 2), nullable=False),
        sa.Column("pending_payout", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_bookings", sa.Integer(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_partners")),
        sa.UniqueConstraint("email", name=op.f("uq_partners_email")),
    )

    # ---------- bookings ----------
    op.create_table(
        "bookings",
        _id(),
        sa.Column("reference", sa.String(length=32), nullable=True),
        sa.Column("customer_name", sa.String(length=128), nullable=True),
        sa.Column("customer_email", sa.String(length=255), nullable=True),
        sa.Column("customer_phone", sa.String(length=32), nullable=True),
        sa.Column("customer_id", sa.String(length=36), nullable=True),
        sa.Column("partner_id", sa.String(length=36), nullable=True),
        sa.Column("service_type", sa.String(length=64), nullable=True),
        sa.Column("vehicle_type", sa.String(length=64), nullable=True),
        sa.Column("pickup_location", sa.String(length=255), nullable=True),
        sa.Column("dropoff_location", sa.String(length=255), nullable=True),
        sa.Column("pickup_datetime", sa.DateTime(timezone=True), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(length=24), nullable=False),
        sa.Column("payment_status", sa.String(length=24), nullable=False),
        sa.Column("workflow_status", sa.String(length=32), nullable=False),
        sa.Column("completion_email_sent", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], name=op.f("fk_bookings_customer_id_customers")),
        sa.ForeignKeyConstraint(["partner_id"], ["partners.id"], name=op.f("fk_bookings_partner_id_partners")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_bookings")),
    )
    for col in ("reference", "customer_email", "customer_id", "partner_id", "pickup_datetime", "workflow_status"):
        op.create_index(op.f(f"ix_bookings_{col}"), "bookings", [col], unique=False)

    op.create_table(
        "trip_assignments",
        _id(),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("driver_id", sa.String(length=36), nullable=True),
        sa.Column("vehicle_id", sa.String(length=36), nullable=True),
        sa.Column("status", sa.String(length=24), nullable=False),
        sa.Column("assignment_method", sa.String(length=16), nullable=False),
        sa.Column("assigned_by", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("dropoff_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(length=255), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], name=op.f("fk_trip_assignments_booking_id_bookings")),
        sa.ForeignKeyConstraint(["driver_id"], ["drivers.id"], name=op.f("fk_trip_assignments_driver_id_drivers")),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], name=op.f("fk_trip_assignments_vehicle_id_vehicles")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_trip_assignments")),
    )
    op.create_index(op.f("ix_trip_assignments_booking_id"), "trip_assignments", ["booking_id"], unique=False)
    op.create_index("ix_trip_assignments_status_dropoff", "trip_assignments", ["status", "dropoff_completed_at"], unique=False)

    op.create_table(
        "trip_logs",
        _id(),
        sa.Column("assignment_id", sa.String(length=36), nullable=False),
        sa.Column("event_type", sa.String(length=32), nullable=False),
        sa.Column("event_data", JSON, nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["assignment_id"], ["trip_assignments.id"],
            name=op.f("fk_trip_logs_assignment_id_trip_assignments"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_trip_logs")),
    )
    op.create_index(op.f("ix_trip_logs_assignment_id"), "trip_logs", ["assignment_id"], unique=False)

    op.create_table(
        "booking_cancellation_requests",
        _id(),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("cancellation_token", sa.String(length=128), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", JSON, nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["booking_id"], ["bookings.id"],
            name=op.f("fk_booking_cancellation_requests_booking_id_bookings"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_booking_cancellation_requests")),
        sa.UniqueConstraint("cancellation_token", name=op.f("uq_booking_cancellation_requests_cancellation_token")),
    )

    # ---------- partner ledger ----------
    op.create_table(
        "partner_payouts",
        _id(),
        sa.Column("partner_id", sa.String(length=36), nullable=False),
        sa.Column("payout_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("included_transactions", JSON, nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["partner_id"], ["partners.id"], name=op.f("fk_partner_payouts_partner_id_partners")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_partner_payouts")),
    )
    op.create_index(op.f("ix_partner_payouts_partner_id"), "partner_payouts", ["partner_id"], unique=False)

    op.create_table(
        "partner_transactions",
        _id(),
        sa.Column("partner_id", sa.String(length=36), nullable=False),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("transaction_type", sa.String(length=32), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("platform_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("net_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("payout_id", sa.String(length=36), nullable=True),
        sa.Column("transaction_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["partner_id"], ["partners.id"], name=op.f("fk_partner_transactions_partner_id_partners")),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], name=op.f("fk_partner_transactions_booking_id_bookings")),
        sa.ForeignKeyConstraint(
            ["payout_id"], ["partner_payouts.id"],
            name=op.f("fk_partner_transactions_payout_id_partner_payouts"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_partner_transactions")),
        sa.UniqueConstraint("booking_id", "transaction_type", name="uq_partner_transactions_booking_type"),
    )
    for col in ("partner_id", "booking_id", "payout_id"):
        op.create_index(op.f(f"ix_partner_transactions_{col}"), "partner_transactions", [col], unique=False)

    op.create_table(
        "partner_daily_stats",
        _id(),
        sa.Column("partner_id", sa.String(length=36), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("bookings_count", sa.Integer(), nullable=False),
        sa.Column("total_revenue", sa.Numeric(12, 2), nullable=False),
        sa.Column("commission_earned", sa.Numeric(12, 2), nullable=False),
        sa.Column("platform_fees", sa.Numeric(12, 2), nullable=False),
        sa.ForeignKeyConstraint(["partner_id"], ["partners.id"], name=op.f("fk_partner_daily_stats_partner_id_partners")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_partner_daily_stats")),
        sa.UniqueConstraint("partner_id", "date", name="uq_partner_daily_stats_partner_date"),
    )

    # ---------- billing ----------
    op.create_table(
        "invoices",
        _id(),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=True),
        sa.Column("assignment_id", sa.String(length=36), nullable=True),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("line_items", JSON, nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], name=op.f("fk_invoices_booking_id_bookings")),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], name=op.f("fk_invoices_customer_id_customers")),
        sa.ForeignKeyConstraint(
            ["assignment_id"], ["trip_assignments.id"],
            name=op.f("fk_invoices_assignment_id_trip_assignments"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_invoices")),
    )
    op.create_index(op.f("ix_invoices_booking_id"), "invoices", ["booking_id"], unique=False)

    op.create_table(
        "payment_transactions",
        _id(),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=32), nullable=False),
        sa.Column("transaction_type", sa.String(length=32), nullable=False),
        sa.Column("stripe_payment_id", sa.String(length=128), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("transaction_date", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], name=op.f("fk_payment_transactions_booking_id_bookings")),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], name=op.f("fk_payment_transactions_customer_id_customers")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_payment_transactions")),
    )
    op.create_index(op.f("ix_payment_transactions_booking_id"), "payment_transactions", ["booking_id"], unique=False)

    op.create_table(
        "review_requests",
        _id(),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("driver_id", sa.String(length=36), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], name=op.f("fk_review_requests_booking_id_bookings")),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], name=op.f("fk_review_requests_customer_id_customers")),
        sa.ForeignKeyConstraint(["driver_id"], ["drivers.id"], name=op.f("fk_review_requests_driver_id_drivers")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_review_requests")),
    )

    # ---------- ops ----------
    op.create_table(
        "admin_notifications",
        _id(),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", JSON, nullable=False),
        sa.Column("priority", sa.String(length=16), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_admin_notifications")),
    )
    op.create_index(op.f("ix_admin_notifications_type"), "admin_notifications", ["type"], unique=False)

    op.create_table(
        "automation_logs",
        _id(),
        sa.Column("automation_name", sa.String(length=64), nullable=False),
        sa.Column("trigger_type", sa.String(length=16), nullable=False),
        sa.Column("execution_status", sa.String(length=16), nullable=False),
        sa.Column("records_processed", sa.Integer(), nullable=False),
        sa.Column("errors_count", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_automation_logs")),
    )
    op.create_index(op.f("ix_automation_logs_automation_name"), "automation_logs", ["automation_name"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_automation_logs_automation_name"), table_name="automation_logs")
    op.drop_table("automation_logs")
    op.drop_index(op.f("ix_admin_notifications_type"), table_name="admin_notifications")
    op.drop_table("admin_notifications")
    op.drop_table("review_requests")
    op.drop_index(op.f("ix_payment_transactions_booking_id"), table_name="payment_transactions")
    op.drop_table("payment_transactions")
    op.drop_index(op.f("ix_invoices_booking_id"), table_name="invoices")
    op.drop_table("invoices")
    op.drop_table("partner_daily_stats")
    for col in ("partner_id", "booking_id", "payout_id"):
        op.drop_index(op.f(f"ix_partner_transactions_{col}"), table_name="partner_transactions")
    op.drop_table("partner_transactions")
    op.drop_index(op.f("ix_partner_payouts_partner_id"), table_name="partner_payouts")
    op.drop_table("partner_payouts")
    op.drop_table("booking_cancellation_requests")
    op.drop_index(op.f("ix_trip_logs_assignment_id"), table_name="trip_logs")
    op.drop_table("trip_logs")
    op.drop_index("ix_trip_assignments_status_dropoff", table_name="trip_assignments")
    op.drop_index(op.f("ix_trip_assignments_booking_id"), table_name="trip_assignments")
    op.drop_table("trip_assignments")
    for col in ("reference", "customer_email", "customer_id", "partner_id", "pickup_datetime", "workflow_status"):
        op.drop_index(op.f(f"ix_bookings_{col}"), table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("partners")
    op.drop_index(op.f("ix_customer_activity_log_customer_id"), table_name="customer_activity_log")
    op.drop_table("customer_activity_log")
    op.drop_index(op.f("ix_customers_email"), table_name="customers")
    op.drop_table("customers")
    op.drop_table("hotel_zones")
    op.drop_table("global_discount_settings")
    op.drop_index("ix_pricing_rules_route", table_name="pricing_rules")
    op.drop_table("pricing_rules")
    op.drop_table("drivers")
    op.drop_index(op.f("ix_vehicles_vehicle_type"), table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_index(op.f("ix_vehicle_types_name"), table_name="vehicle_types")
    op.drop_table("vehicle_types")
