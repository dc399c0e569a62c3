# vehicles / drivers repository

from __future__ import annotations

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db.model.fleet import Driver, Vehicle


def get_vehicle(db: Session, vehicle_id: str) -> Optional[Vehicle]:
    return db.get(Vehicle, vehicle_id)


def list_available_vehicles(db: Session, vehicle_type: str) -> list[Vehicle]:
    stmt = (
        select(Vehicle)
        .where(Vehicle.vehicle_type == vehicle_type)
        .where(Vehicle.status == "available")
        .order_by(Vehicle.id.asc())
    )
    return list(db.scalars(stmt))


def set_vehicle_status(db: Session, vehicle_id: str, status: str) -> None:
    db.execute(update(Vehicle).where(Vehicle.id == vehicle_id).values(status=status))


def add_mileage(db: Session, vehicle_id: str, miles: int) -> None:
    db.execute(update(Vehicle).where(Vehicle.id == vehicle_id).values(mileage=Vehicle.mileage + miles))


def get_active_driver(db: Session, driver_id: str) -> Optional[Driver]:
    stmt = select(Driver).where(Driver.id == driver_id).where(Driver.status == "active")
    return db.scalars(stmt).first()


def list_active_drivers_by_rating(db: Session) -> list[Driver]:
    stmt = select(Driver).where(Driver.status == "active").order_by(Driver.rating.desc())
    return list(db.scalars(stmt))
