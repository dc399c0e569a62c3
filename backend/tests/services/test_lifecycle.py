from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.db.model.billing import Invoice, PaymentTransaction, ReviewRequest
from app.db.model.booking import Booking, BookingCancellationRequest, TripAssignment
from app.db.model.customer import Customer, CustomerActivityLog
from app.db.model.fleet import Vehicle
from app.db.model.ops import AdminNotification
from app.db.model.partner import Partner, PartnerTransaction
from app.repository.partner_repo import COMMISSION_APPROVED, COMMISSION_PENDING
from app.services.booking.lifecycle import (
    PaymentConfirmation,
    complete_booking,
    confirm_payment,
    handle_new_booking,
    request_cancellation,
)
from app.services.errors import AlreadyProcessed, NotFound, ValidationFailed


def _now():
    return datetime.now(timezone.utc)


# ============================== new booking ==============================
def test_new_booking_creates_customer(db, factory):
    booking = factory.booking()

    result = handle_new_booking(db, booking.id)

    assert result["success"] is True
    db.expire_all()
    customer = db.scalars(select(Customer)).one()
    assert customer.email == "ana@example.com"
    assert (customer.first_name, customer.last_name) == ("Ana", "Maria Perez")
    assert customer.total_bookings == 1
    assert result["customer_id"] == customer.id
    assert db.get(Booking, booking.id).customer_id == customer.id

    note = db.scalars(select(AdminNotification)).one()
    assert note.type == "new_booking"
    assert note.priority == "high"
    activity = db.scalars(select(CustomerActivityLog)).one()
    assert activity.activity_type == "booking_created"


def test_new_booking_repeat_customer(db, factory):
    existing = factory.customer(total_bookings=2)
    booking = factory.booking()

    result = handle_new_booking(db, booking.id)

    db.expire_all()
    assert result["customer_id"] == existing.id
    assert db.get(Customer, existing.id).total_bookings == 3
    assert len(db.scalars(select(Customer)).all()) == 1


def test_new_booking_without_email_still_notifies(db, factory):
    booking = factory.booking(email=None)

    result = handle_new_booking(db, booking.id)

    assert result["customer_id"] is None
    assert db.scalars(select(AdminNotification)).one().type == "new_booking"


def test_new_booking_missing(db):
    with pytest.raises(NotFound):
        handle_new_booking(db, "does-not-exist")
    with pytest.raises(ValidationFailed):
        handle_new_booking(db, "")


# ============================== payment ==============================
def test_payment_far_pickup_records_everything(db, factory):
    partner = factory.partner(rate="20")
    customer = factory.customer()
    booking = factory.booking(partner=partner, customer=customer, pickup=_now() + timedelta(days=3))

    result = confirm_payment(db, PaymentConfirmation(booking.id, "card", Decimal("200"), "pi_123"))

    assert result["auto_dispatch_triggered"] is False
    assert result["workflow_status"] == "awaiting_assignment"

    db.expire_all()
    row = db.get(Booking, booking.id)
    assert (row.payment_status, row.workflow_status) == ("paid", "awaiting_assignment")

    payment = db.scalars(select(PaymentTransaction)).one()
    assert payment.amount == Decimal("200")
    assert payment.status == "completed"
    assert payment.stripe_payment_id == "pi_123"

    assert db.get(Customer, customer.id).total_spent == Decimal("200")

    pending = db.scalars(select(PartnerTransaction)).one()
    assert pending.transaction_type == COMMISSION_PENDING
    assert pending.status == "pending"
    assert (pending.amount, pending.platform_fee, pending.net_amount) == (
        Decimal("40"), Decimal("6"), Decimal("34"),
    )
    assert db.scalars(select(AdminNotification)).one().type == "payment_received"


def test_payment_twice_keeps_single_pending_commission(db, factory):
    partner = factory.partner()
    booking = factory.booking(partner=partner)

    confirm_payment(db, PaymentConfirmation(booking.id, "card", Decimal("200")))
    confirm_payment(db, PaymentConfirmation(booking.id, "card", Decimal("200")))

    assert len(db.scalars(select(PartnerTransaction)).all()) == 1


def test_payment_near_pickup_dispatches(db, factory):
    booking = factory.booking(pickup=_now() + timedelta(hours=3), vehicle_type="sedan")
    factory.vehicle("sedan")
    driver = factory.driver()

    result = confirm_payment(db, PaymentConfirmation(booking.id, "card", Decimal("200")))

    assert result["auto_dispatch_triggered"] is True
    # inline 模式下派车已经执行
    db.expire_all()
    assignment = db.scalars(select(TripAssignment)).one()
    assert assignment.driver_id == driver.id
    assert assignment.assignment_method == "auto"
    assert db.get(Booking, booking.id).workflow_status == "assigned"


def test_payment_pickup_in_past_not_dispatched(db, factory):
    booking = factory.booking(pickup=_now() - timedelta(hours=1))

    result = confirm_payment(db, PaymentConfirmation(booking.id, "cash", Decimal("50")))

    assert result["auto_dispatch_triggered"] is False


def test_payment_dispatch_failure_does_not_fail_payment(db, factory):
    # 没有车辆：派车失败只记日志
    booking = factory.booking(pickup=_now() + timedelta(hours=2))

    result = confirm_payment(db, PaymentConfirmation(booking.id, "card", Decimal("80")))

    assert result["success"] is True
    assert result["auto_dispatch_triggered"] is True
    assert db.scalars(select(TripAssignment)).all() == []


def test_payment_unknown_booking(db):
    with pytest.raises(NotFound):
        confirm_payment(db, PaymentConfirmation("missing", "card", Decimal("10")))


# ============================== completion ==============================
def test_completion_invoice_review_commission(db, factory):
    partner = factory.partner(rate="20")
    customer = factory.customer(total_bookings=1)
    booking = factory.booking(partner=partner, customer=customer)
    vehicle = factory.vehicle()
    driver = factory.driver()
    confirm_payment(db, PaymentConfirmation(booking.id, "card", Decimal("200")))
    assignment = factory.assignment(booking, driver=driver, vehicle=vehicle, status="in_progress")

    result = complete_booking(db, assignment.id)

    assert result["success"] is True
    assert result["review_request_created"] is True
    assert result["commission_approved"] is True

    db.expire_all()
    invoice = db.get(Invoice, result["invoice_id"])
    assert invoice.subtotal == Decimal("200")
    assert invoice.tax_amount == Decimal("30")
    assert invoice.total_amount == Decimal("230")
    assert invoice.status == "sent"
    assert invoice.due_date - invoice.invoice_date == timedelta(days=30)
    assert invoice.line_items[0]["quantity"] == 1

    review = db.scalars(select(ReviewRequest)).one()
    assert review.driver_id == driver.id
    assert review.status == "pending"

    row = db.get(Customer, customer.id)
    assert row.total_bookings == 2
    assert row.total_spent == Decimal("400")     # 付款 200 + 完单 200

    tx = db.scalars(select(PartnerTransaction)).one()
    assert tx.transaction_type == COMMISSION_APPROVED
    assert tx.status == "approved"
    p = db.get(Partner, partner.id)
    assert p.total_earnings == Decimal("34")
    assert p.pending_payout == Decimal("34")
    assert p.total_bookings == 1

    a = db.get(TripAssignment, assignment.id)
    assert a.status == "completed"
    assert a.dropoff_completed_at is not None
    assert db.get(Vehicle, vehicle.id).mileage == 50
    b = db.get(Booking, booking.id)
    assert b.workflow_status == "completed"
    assert b.completion_email_sent is True


def test_completion_without_customer_or_partner(db, factory):
    booking = factory.booking(email=None, price="120")
    assignment = factory.assignment(booking, status="in_progress")

    result = complete_booking(db, assignment.id)

    assert result["review_request_created"] is False
    assert result["commission_approved"] is False
    assert db.scalars(select(ReviewRequest)).all() == []


def test_completion_unknown_assignment(db):
    with pytest.raises(NotFound):
        complete_booking(db, "missing")


# ============================== cancellation ==============================
def test_cancellation_request_recorded(db, factory):
    booking = factory.booking()
    factory.cancellation(booking, token="tok-ok")

    result = request_cancellation(db, "tok-ok", "Flight cancelled")

    assert result["success"] is True
    assert result["booking"]["id"] == booking.id

    db.expire_all()
    req = db.scalars(select(BookingCancellationRequest)).one()
    assert req.status == "pending"
    assert req.reason == "Flight cancelled"
    assert req.requested_at is not None
    assert req.meta["reason_provided"] is True
    assert req.meta["source"] == "email_link"
    assert "submitted_at" in req.meta


def test_cancellation_errors(db, factory):
    booking = factory.booking()
    factory.cancellation(booking, token="tok-done", status="approved")
    cancelled = factory.booking(status="cancelled")
    factory.cancellation(cancelled, token="tok-cancelled")

    with pytest.raises(ValidationFailed):
        request_cancellation(db, None)
    with pytest.raises(NotFound):
        request_cancellation(db, "nope")
    with pytest.raises(AlreadyProcessed) as exc:
        request_cancellation(db, "tok-done")
    assert "approved" in exc.value.message
    with pytest.raises(AlreadyProcessed):
        request_cancellation(db, "tok-cancelled")
