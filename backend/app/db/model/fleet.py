from __future__ import annotations
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, func, text
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, new_id


"""
  vehicle_types: 报价用的车型目录（按名称匹配，忽略大小写）
"""
class VehicleType(Base):

    __tablename__ = "vehicle_types"

    id:   Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    passenger_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    luggage_capacity:   Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    minimum_fare:       Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))    # multi-vehicle quote fallback
    display_order:      Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active:          Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"), default=True)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Vehicle(Base):

    __tablename__ = "vehicles"

    id:           Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    vehicle_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)   # free-text type used by dispatch
    plate_number: Mapped[Optional[str]] = mapped_column(String(32))
    status:       Mapped[str] = mapped_column(String(24), nullable=False, default="available")   # available / in_use / maintenance
    capacity:     Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    mileage:      Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    updated_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Driver(Base):

    __tablename__ = "drivers"

    id:         Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    first_name: Mapped[str] = mapped_column(String(64), nullable=False)
    last_name:  Mapped[str] = mapped_column(String(64), nullable=False, default="")
    phone:      Mapped[Optional[str]] = mapped_column(String(32))
    status:     Mapped[str] = mapped_column(String(24), nullable=False, default="active")   # active / inactive / suspended
    rating:     Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=Decimal("5.00"))
    vehicle_id: Mapped[Optional[str]] = mapped_column(String(36))    # usual vehicle, preferred at dispatch

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
