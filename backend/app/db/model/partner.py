from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, JSONType, new_id


class Partner(Base):

    __tablename__ = "partners"

    id:            Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email:         Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("10"))   # percentage
    payment_terms:   Mapped[str] = mapped_column(String(32), nullable=False, default="monthly")

    # 汇总计数器，由结算任务/完单时增量更新
    total_earnings: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    pending_payout: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    total_bookings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())


'''
合作方佣金流水
    - transaction_type: commission_pending（付款时创建） / commission_approved（完单或夜间结算）
    - 同一 booking 同一类型只允许一条；夜间结算先查再插，唯一键兜底并发重复
    - payout_id 为空 = 尚未纳入打款批次
'''
class PartnerTransaction(Base):

    __tablename__ = "partner_transactions"

    id:               Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    partner_id:       Mapped[str] = mapped_column(String(36), ForeignKey("partners.id"), nullable=False, index=True)
    booking_id:       Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    transaction_type: Mapped[str] = mapped_column(String(32), nullable=False)

    amount:       Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)    # gross commission
    platform_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    net_amount:   Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)    # amount - platform_fee

    status:    Mapped[str] = mapped_column(String(16), nullable=False, default="pending")   # pending / approved
    payout_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("partner_payouts.id"), index=True)

    transaction_date: Mapped[Optional[object]] = mapped_column(DateTime(timezone=True))
    approved_at:      Mapped[Optional[object]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("booking_id", "transaction_type", name="uq_partner_transactions_booking_type"),
    )


class PartnerPayout(Base):

    __tablename__ = "partner_payouts"

    id:          Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    partner_id:  Mapped[str] = mapped_column(String(36), ForeignKey("partners.id"), nullable=False, index=True)
    payout_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount:      Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status:      Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    included_transactions: Mapped[List[Any]] = mapped_column(JSONType, nullable=False, default=list)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())


class PartnerDailyStats(Base):

    __tablename__ = "partner_daily_stats"

    id:         Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    partner_id: Mapped[str] = mapped_column(String(36), ForeignKey("partners.id"), nullable=False)
    date:       Mapped[date] = mapped_column(Date, nullable=False)

    bookings_count:    Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_revenue:     Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    commission_earned: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    platform_fees:     Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    __table_args__ = (
        UniqueConstraint("partner_id", "date", name="uq_partner_daily_stats_partner_date"),
    )
