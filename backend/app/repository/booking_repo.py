# bookings / trip assignments / cancellation requests repository

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.model.booking import Booking, BookingCancellationRequest, TripAssignment, TripLog


ACTIVE_ASSIGNMENT_STATUSES = ("assigned", "accepted", "en_route_pickup", "arrived", "in_progress")
SERVED_ASSIGNMENT_STATUSES = ("arrived", "in_progress", "completed")
NO_SHOW_CANDIDATE_WORKFLOWS = ("assigned", "confirmed", "driver_en_route")


# ---------- bookings ----------
def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
    return db.get(Booking, booking_id)


def list_no_show_candidates(db: Session, pickup_before: datetime) -> list[Booking]:
    """workflow 在活动状态、已付款、接客时间早于 pickup_before 的订单"""
    stmt = (
        select(Booking)
        .where(Booking.workflow_status.in_(NO_SHOW_CANDIDATE_WORKFLOWS))
        .where(Booking.payment_status == "paid")
        .where(Booking.pickup_datetime < pickup_before)
        .order_by(Booking.pickup_datetime.asc())
    )
    return list(db.scalars(stmt))


# ---------- trip assignments ----------
def get_assignment(db: Session, assignment_id: str) -> Optional[TripAssignment]:
    return db.get(TripAssignment, assignment_id)


def current_assignment_for_booking(db: Session, booking_id: str) -> Optional[TripAssignment]:
    """最近一条未取消的派车记录"""
    stmt = (
        select(TripAssignment)
        .where(TripAssignment.booking_id == booking_id)
        .where(TripAssignment.status != "cancelled")
        .order_by(TripAssignment.created_at.desc())
    )
    return db.scalars(stmt).first()


def active_assignment_for_booking(db: Session, booking_id: str) -> Optional[TripAssignment]:
    stmt = (
        select(TripAssignment)
        .where(TripAssignment.booking_id == booking_id)
        .where(TripAssignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES))
    )
    return db.scalars(stmt).first()


def busy_driver_ids(db: Session) -> set[str]:
    stmt = (
        select(TripAssignment.driver_id)
        .where(TripAssignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES))
        .where(TripAssignment.driver_id.is_not(None))
    )
    return set(db.scalars(stmt))


def list_completed_partner_trips(db: Session, start: datetime, end: datetime) -> list[TripAssignment]:
    """dropoff_completed_at ∈ [start, end) 且订单挂了合作方的已完成行程"""
    stmt = (
        select(TripAssignment)
        .join(Booking, Booking.id == TripAssignment.booking_id)
        .where(TripAssignment.status == "completed")
        .where(TripAssignment.dropoff_completed_at >= start)
        .where(TripAssignment.dropoff_completed_at < end)
        .where(Booking.partner_id.is_not(None))
        .order_by(TripAssignment.dropoff_completed_at.asc())
    )
    return list(db.scalars(stmt).unique())


def create_assignment(
    db: Session,
    *,
    booking_id: str,
    driver_id: str,
    vehicle_id: str,
    method: str,
    assigned_by: str,
    notes: Optional[str] = None,
) -> TripAssignment:
    row = TripAssignment(
        booking_id=booking_id,
        driver_id=driver_id,
        vehicle_id=vehicle_id,
        status="assigned",
        assignment_method=method,
        assigned_by=assigned_by,
        notes=notes,
    )
    db.add(row)
    db.flush()
    return row


def add_trip_log(db: Session, assignment_id: str, event_type: str, event_data: Dict[str, Any]) -> TripLog:
    row = TripLog(assignment_id=assignment_id, event_type=event_type, event_data=event_data)
    db.add(row)
    return row


# ---------- cancellation requests ----------
def get_cancellation_by_token(db: Session, token: str) -> Optional[BookingCancellationRequest]:
    stmt = select(BookingCancellationRequest).where(BookingCancellationRequest.cancellation_token == token)
    return db.scalars(stmt).first()
