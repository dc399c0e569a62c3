from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, JSONType, new_id


class Invoice(Base):

    __tablename__ = "invoices"

    id:            Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    booking_id:    Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    customer_id:   Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("customers.id"))
    assignment_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("trip_assignments.id"))

    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date:     Mapped[date] = mapped_column(Date, nullable=False)
    subtotal:     Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax_rate:     Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    tax_amount:   Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status:       Mapped[str] = mapped_column(String(16), nullable=False, default="sent")
    line_items:   Mapped[List[Any]] = mapped_column(JSONType, nullable=False, default=list)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())


"""
  payment_transactions: 收款流水；no-show 罚金以负数金额 + pending 状态记账
"""
class PaymentTransaction(Base):

    __tablename__ = "payment_transactions"

    id:               Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    booking_id:       Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    customer_id:      Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("customers.id"))
    amount:           Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_method:   Mapped[str] = mapped_column(String(32), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(32), nullable=False, default="payment")   # payment / no_show_fee
    stripe_payment_id: Mapped[Optional[str]] = mapped_column(String(128))
    status:           Mapped[str] = mapped_column(String(16), nullable=False)
    transaction_date: Mapped[Optional[object]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())


class ReviewRequest(Base):

    __tablename__ = "review_requests"

    id:          Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    booking_id:  Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id"), nullable=False)
    customer_id: Mapped[str] = mapped_column(String(36), ForeignKey("customers.id"), nullable=False)
    driver_id:   Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("drivers.id"))
    status:      Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    expires_at:  Mapped[object] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())
