"""
自动派车：
    1) 订单已有 active 派车记录 -> 拒绝
    2) 找指定车型（请求 > 订单 > sedan）的可用车辆，没有 -> 拒绝
    3) 指定司机：active 且手上没有 active 派车 -> 直接派给他
    4) 否则在空闲 active 司机里按评分降序取第一个
    5) 车辆优先用司机常用车，不在可用列表里则取第一辆
    6) 写 trip_assignments(auto) + booking.workflow_status=assigned + trip_logs
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.db.model.booking import TripAssignment
from app.db.model.fleet import Driver, Vehicle
from app.repository import booking_repo, fleet_repo
from app.services.errors import DispatchUnavailable, NotFound, ValidationFailed

logger = logging.getLogger(__name__)

ASSIGNED_BY = "auto-dispatch-system"
DEFAULT_VEHICLE_TYPE = "sedan"


def _driver_dict(d: Driver) -> Dict[str, Any]:
    return {"id": d.id, "first_name": d.first_name, "last_name": d.last_name,
            "rating": float(d.rating), "vehicle_id": d.vehicle_id}


def _vehicle_dict(v: Vehicle) -> Dict[str, Any]:
    return {"id": v.id, "vehicle_type": v.vehicle_type, "plate_number": v.plate_number,
            "status": v.status, "capacity": v.capacity}


def _assignment_dict(a: TripAssignment) -> Dict[str, Any]:
    return {"id": a.id, "booking_id": a.booking_id, "driver_id": a.driver_id, "vehicle_id": a.vehicle_id,
            "status": a.status, "assignment_method": a.assignment_method, "assigned_by": a.assigned_by,
            "notes": a.notes}


def _pick_vehicle(vehicles: list[Vehicle], driver: Driver) -> Vehicle:
    for v in vehicles:
        if v.id == driver.vehicle_id:
            return v
    return vehicles[0]


def auto_dispatch(
    db: Session,
    booking_id: str,
    preferred_driver_id: Optional[str] = None,
    vehicle_type: Optional[str] = None,
) -> Dict[str, Any]:
    if not booking_id:
        raise ValidationFailed("Missing required field: booking_id")

    booking = booking_repo.get_booking(db, booking_id)
    if booking is None:
        raise NotFound("Booking not found")

    if booking_repo.active_assignment_for_booking(db, booking.id) is not None:
        raise DispatchUnavailable("Booking already has an active assignment")

    wanted_type = vehicle_type or booking.vehicle_type or DEFAULT_VEHICLE_TYPE
    vehicles = fleet_repo.list_available_vehicles(db, wanted_type)
    if not vehicles:
        raise DispatchUnavailable(f"No available vehicles of the requested type: {wanted_type}")

    busy = booking_repo.busy_driver_ids(db)
    driver: Optional[Driver] = None
    notes: Optional[str] = None
    message = "Booking auto-assigned successfully"

    if preferred_driver_id:
        preferred = fleet_repo.get_active_driver(db, preferred_driver_id)
        if preferred is not None and preferred.id not in busy:
            driver = preferred
            message = "Booking assigned to preferred driver"
        else:
            logger.info("preferred driver %s unavailable for booking %s", preferred_driver_id, booking.id)

    if driver is None:
        drivers = fleet_repo.list_active_drivers_by_rating(db)
        if not drivers:
            raise DispatchUnavailable("No available drivers")
        free = [d for d in drivers if d.id not in busy]
        if not free:
            raise DispatchUnavailable("All drivers are currently busy")
        driver = free[0]
        notes = f"Auto-assigned to highest-rated available driver ({driver.rating}/5)"

    vehicle = _pick_vehicle(vehicles, driver)

    assignment = booking_repo.create_assignment(
        db,
        booking_id=booking.id,
        driver_id=driver.id,
        vehicle_id=vehicle.id,
        method="auto",
        assigned_by=ASSIGNED_BY,
        notes=notes,
    )
    booking.workflow_status = "assigned"
    booking_repo.add_trip_log(db, assignment.id, "status_change", {
        "status": "assigned",
        "driver_name": driver.full_name,
        "vehicle_info": _vehicle_dict(vehicle),
        "assignment_method": "auto",
    })
    db.commit()

    logger.info("booking %s dispatched to driver=%s vehicle=%s", booking.id, driver.id, vehicle.id)
    return {
        "success": True,
        "assignment": _assignment_dict(assignment),
        "driver": _driver_dict(driver),
        "vehicle": _vehicle_dict(vehicle),
        "message": message,
    }
