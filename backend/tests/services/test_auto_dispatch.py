import pytest
from sqlalchemy import select

from app.db.model.booking import Booking, TripLog
from app.services.dispatch.auto_dispatch import ASSIGNED_BY, auto_dispatch
from app.services.errors import DispatchUnavailable, NotFound, ValidationFailed


def test_picks_highest_rated_free_driver(db, factory):
    booking = factory.booking(vehicle_type="sedan")
    vehicle = factory.vehicle("sedan")
    busy_star = factory.driver("Busy", rating="4.95")
    factory.driver("Low", rating="3.80")
    best_free = factory.driver("Best", rating="4.70")
    factory.driver("Off", rating="5.00", status="inactive")

    other = factory.booking()
    factory.assignment(other, driver=busy_star, status="en_route_pickup")

    result = auto_dispatch(db, booking.id)

    assert result["success"] is True
    assert result["driver"]["id"] == best_free.id
    assert result["vehicle"]["id"] == vehicle.id
    assert result["assignment"]["assignment_method"] == "auto"
    assert result["assignment"]["assigned_by"] == ASSIGNED_BY
    assert "4.70" in result["assignment"]["notes"]

    db.expire_all()
    assert db.get(Booking, booking.id).workflow_status == "assigned"
    log = db.scalars(select(TripLog)).one()
    assert log.event_type == "status_change"
    assert log.event_data["status"] == "assigned"


def test_preferred_driver_and_usual_vehicle(db, factory):
    booking = factory.booking(vehicle_type="minivan")
    factory.vehicle("minivan", plate="A-1")
    usual = factory.vehicle("minivan", plate="B-2")
    factory.driver("Top", rating="5.00")
    preferred = factory.driver("Pref", rating="4.10", vehicle_id=usual.id)

    result = auto_dispatch(db, booking.id, preferred_driver_id=preferred.id)

    assert result["driver"]["id"] == preferred.id
    assert result["vehicle"]["id"] == usual.id
    assert result["message"] == "Booking assigned to preferred driver"
    assert result["assignment"]["notes"] is None


def test_busy_preferred_driver_falls_back(db, factory):
    booking = factory.booking()
    factory.vehicle("sedan")
    preferred = factory.driver("Pref", rating="4.90")
    fallback = factory.driver("Other", rating="4.00")
    factory.assignment(factory.booking(), driver=preferred, status="assigned")

    result = auto_dispatch(db, booking.id, preferred_driver_id=preferred.id)

    assert result["driver"]["id"] == fallback.id


def test_request_vehicle_type_overrides_booking(db, factory):
    booking = factory.booking(vehicle_type="sedan")
    suv = factory.vehicle("suburban")
    factory.driver()

    result = auto_dispatch(db, booking.id, vehicle_type="suburban")

    assert result["vehicle"]["id"] == suv.id


def test_already_assigned(db, factory):
    booking = factory.booking()
    factory.vehicle("sedan")
    factory.driver()
    factory.assignment(booking, status="accepted")

    with pytest.raises(DispatchUnavailable) as exc:
        auto_dispatch(db, booking.id)
    assert exc.value.status_code == 409


def test_cancelled_assignment_allows_redispatch(db, factory):
    booking = factory.booking()
    factory.vehicle("sedan")
    factory.driver()
    factory.assignment(booking, status="cancelled")

    assert auto_dispatch(db, booking.id)["success"] is True


def test_no_vehicle_of_type(db, factory):
    booking = factory.booking(vehicle_type="sprinter")
    factory.vehicle("sedan")
    factory.vehicle("sprinter", status="maintenance")
    factory.driver()

    with pytest.raises(DispatchUnavailable) as exc:
        auto_dispatch(db, booking.id)
    assert "sprinter" in exc.value.message


def test_no_drivers_and_all_busy(db, factory):
    booking = factory.booking()
    factory.vehicle("sedan")
    with pytest.raises(DispatchUnavailable) as exc:
        auto_dispatch(db, booking.id)
    assert exc.value.message == "No available drivers"

    driver = factory.driver()
    factory.assignment(factory.booking(), driver=driver, status="in_progress")
    with pytest.raises(DispatchUnavailable) as exc:
        auto_dispatch(db, booking.id)
    assert exc.value.message == "All drivers are currently busy"


def test_bad_input(db):
    with pytest.raises(ValidationFailed):
        auto_dispatch(db, "")
    with pytest.raises(NotFound):
        auto_dispatch(db, "missing")
