from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from app.db.model.billing import PaymentTransaction
from app.db.model.booking import Booking, TripAssignment
from app.db.model.customer import Customer, CustomerActivityLog
from app.db.model.fleet import Vehicle
from app.db.model.ops import AdminNotification, AutomationLog
from app.orchestration.no_show.no_show_task import AUTOMATION_NAME, handle_no_shows, sweep_no_shows


def _ago(**kw):
    return datetime.now(timezone.utc) - timedelta(**kw)


def _paid(factory, pickup, workflow_status="assigned", customer=None):
    return factory.booking(pickup=pickup, workflow_status=workflow_status, payment_status="paid", customer=customer)


def test_unserved_booking_becomes_no_show(db, factory):
    customer = factory.customer()
    booking = _paid(factory, _ago(hours=2), customer=customer)
    vehicle = factory.vehicle(status="in_use")
    assignment = factory.assignment(booking, driver=factory.driver(), vehicle=vehicle, status="accepted")

    flagged = sweep_no_shows(db)

    assert flagged == [booking.id]
    db.expire_all()
    assert db.get(Booking, booking.id).workflow_status == "no_show"

    a = db.get(TripAssignment, assignment.id)
    assert a.status == "cancelled"
    assert a.cancellation_reason == "Customer no-show"
    assert a.cancelled_at is not None
    assert db.get(Vehicle, vehicle.id).status == "available"

    assert db.get(Customer, customer.id).no_show_count == 1
    assert db.scalars(select(CustomerActivityLog)).one().activity_type == "no_show"

    fee = db.scalars(select(PaymentTransaction)).one()
    assert fee.amount == Decimal("-50")
    assert fee.transaction_type == "no_show_fee"
    assert fee.status == "pending"

    note = db.scalars(select(AdminNotification)).one()
    assert (note.type, note.priority) == ("no_show_detected", "high")


def test_candidate_selection(db, factory):
    arrived = _paid(factory, _ago(hours=1))
    factory.assignment(arrived, status="arrived")
    in_grace = _paid(factory, _ago(minutes=10))
    unpaid = factory.booking(pickup=_ago(hours=3), workflow_status="assigned", payment_status="unpaid")
    done = _paid(factory, _ago(hours=3), workflow_status="completed")
    awaiting = _paid(factory, _ago(hours=3), workflow_status="awaiting_assignment")
    no_assignment = _paid(factory, _ago(hours=1), workflow_status="confirmed")

    flagged = sweep_no_shows(db)

    assert flagged == [no_assignment.id]
    db.expire_all()
    for b in (arrived, in_grace, unpaid, done, awaiting):
        assert db.get(Booking, b.id).workflow_status != "no_show"
    # 没有客户：不记罚金
    assert db.scalars(select(PaymentTransaction)).all() == []


def test_latest_assignment_decides(db, factory):
    booking = _paid(factory, _ago(hours=2), workflow_status="driver_en_route")
    factory.assignment(booking, status="cancelled", created_at=_ago(hours=5))
    factory.assignment(booking, status="in_progress", created_at=_ago(hours=3))

    assert sweep_no_shows(db) == []


def test_task_logs_run(db, factory):
    booking = _paid(factory, _ago(hours=2))

    result = handle_no_shows.run(trigger="manual")

    assert result == {"success": True, "no_shows_detected": 1, "booking_ids": [booking.id]}
    db.expire_all()
    log = db.scalars(select(AutomationLog)).one()
    assert log.automation_name == AUTOMATION_NAME
    assert log.execution_status == "success"
    assert log.records_processed == 1
    assert log.trigger_type == "manual"

    # 第二次扫描不再命中
    assert handle_no_shows.run()["no_shows_detected"] == 0
