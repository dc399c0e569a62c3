# customers + activity log repository

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db.model.customer import Customer, CustomerActivityLog


def get_by_email(db: Session, email: str) -> Optional[Customer]:
    stmt = select(Customer).where(Customer.email == email)
    return db.scalars(stmt).first()


def split_name(full_name: Optional[str]) -> tuple[str, str]:
    """按第一个空格拆分：'Ana Maria Perez' -> ('Ana', 'Maria Perez')"""
    parts = (full_name or "").split(" ")
    return parts[0], " ".join(parts[1:])


def create_customer(db: Session, *, email: str, full_name: Optional[str], phone: Optional[str], today: date) -> Customer:
    first, last = split_name(full_name)
    row = Customer(
        email=email,
        first_name=first,
        last_name=last,
        phone=phone or "",
        total_bookings=1,
        last_booking_date=today,
    )
    db.add(row)
    db.flush()
    return row


def register_repeat_booking(db: Session, customer: Customer, today: date) -> None:
    # read-then-write，与旧逻辑一致
    customer.total_bookings = (customer.total_bookings or 0) + 1
    customer.last_booking_date = today


def add_spent(db: Session, customer_id: str, amount: Decimal) -> None:
    db.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(total_spent=Customer.total_spent + amount)
    )


def record_completed_trip(db: Session, customer_id: str, amount: Decimal, today: date) -> None:
    db.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(
            total_bookings=Customer.total_bookings + 1,
            total_spent=Customer.total_spent + amount,
            last_booking_date=today,
        )
    )


def increment_no_show(db: Session, customer_id: str) -> None:
    db.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(no_show_count=Customer.no_show_count + 1)
    )


def log_activity(db: Session, customer_id: str, activity_type: str, details: Dict[str, Any]) -> CustomerActivityLog:
    row = CustomerActivityLog(customer_id=customer_id, activity_type=activity_type, details=details)
    db.add(row)
    return row
