from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, JSONType, new_id


class Customer(Base):

    __tablename__ = "customers"

    id:         Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email:      Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    last_name:  Mapped[str] = mapped_column(String(128), nullable=False, default="")
    phone:      Mapped[str] = mapped_column(String(32), nullable=False, default="")

    # 累计统计：read-then-write / 自增表达式，没有并发保护
    total_bookings:    Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_spent:       Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    no_show_count:     Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_booking_date: Mapped[Optional[date]] = mapped_column(Date)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())


class CustomerActivityLog(Base):

    __tablename__ = "customer_activity_log"

    id:            Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    customer_id:   Mapped[str] = mapped_column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    activity_type: Mapped[str] = mapped_column(String(32), nullable=False)   # booking_created / payment_received / trip_completed / no_show
    details:       Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())
