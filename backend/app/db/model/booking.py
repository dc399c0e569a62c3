from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Numeric, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base, JSONType, new_id


"""
  bookings 表
  workflow_status 线性推进（没有状态机强制）：
    pending -> payment_pending -> awaiting_assignment -> assigned/confirmed/driver_en_route
            -> completed | no_show | cancelled
"""
class Booking(Base):

    __tablename__ = "bookings"

    id:        Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    reference: Mapped[Optional[str]] = mapped_column(String(32), index=True)

    customer_name:  Mapped[Optional[str]] = mapped_column(String(128))
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(32))
    customer_id:    Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("customers.id"), index=True)
    partner_id:     Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("partners.id"), index=True)

    service_type:     Mapped[Optional[str]] = mapped_column(String(64))
    vehicle_type:     Mapped[Optional[str]] = mapped_column(String(64))
    pickup_location:  Mapped[Optional[str]] = mapped_column(String(255))
    dropoff_location: Mapped[Optional[str]] = mapped_column(String(255))
    pickup_datetime:  Mapped[Optional[object]] = mapped_column(DateTime(timezone=True), index=True)
    price:            Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    status:          Mapped[str] = mapped_column(String(24), nullable=False, default="pending")
    payment_status:  Mapped[str] = mapped_column(String(24), nullable=False, default="unpaid")
    workflow_status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending", index=True)

    completion_email_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"), default=False)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# 一单可能有多条派车记录（改派/取消），取消后才允许新的 active 记录
class TripAssignment(Base):

    __tablename__ = "trip_assignments"

    id:         Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    booking_id: Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    driver_id:  Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("drivers.id"))
    vehicle_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("vehicles.id"))

    # assigned / accepted / en_route_pickup / arrived / in_progress / completed / cancelled
    status:            Mapped[str] = mapped_column(String(24), nullable=False, default="assigned")
    assignment_method: Mapped[str] = mapped_column(String(16), nullable=False, default="manual")
    assigned_by:       Mapped[Optional[str]] = mapped_column(String(64))
    notes:             Mapped[Optional[str]] = mapped_column(Text)

    dropoff_completed_at: Mapped[Optional[object]] = mapped_column(DateTime(timezone=True))
    cancelled_at:         Mapped[Optional[object]] = mapped_column(DateTime(timezone=True))
    cancellation_reason:  Mapped[Optional[str]] = mapped_column(String(255))

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())

    booking = relationship("Booking", lazy="joined")

    __table_args__ = (
        Index("ix_trip_assignments_status_dropoff", "status", "dropoff_completed_at"),
    )


class TripLog(Base):

    __tablename__ = "trip_logs"

    id:            Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    assignment_id: Mapped[str] = mapped_column(String(36), ForeignKey("trip_assignments.id"), nullable=False, index=True)
    event_type:    Mapped[str] = mapped_column(String(32), nullable=False)
    event_data:    Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())


"""
  取消申请：邮件里带 token，客户提交后等待人工处理（status 保持 pending）
"""
class BookingCancellationRequest(Base):

    __tablename__ = "booking_cancellation_requests"

    id:                 Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    booking_id:         Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id"), nullable=False)
    cancellation_token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    status:             Mapped[str] = mapped_column(String(16), nullable=False, default="pending")   # pending / approved / rejected
    reason:             Mapped[Optional[str]] = mapped_column(Text)
    requested_at:       Mapped[Optional[object]] = mapped_column(DateTime(timezone=True))
    # "metadata" 是 DeclarativeBase 保留属性名，列名保持 metadata
    meta:               Mapped[Dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())

    booking = relationship("Booking", lazy="joined")
