# partners / commission transactions / payouts / daily stats repository

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db.model.partner import Partner, PartnerDailyStats, PartnerPayout, PartnerTransaction
from app.services.commission.commission_calc import CommissionBreakdown, PartnerDayTotals


COMMISSION_PENDING = "commission_pending"
COMMISSION_APPROVED = "commission_approved"


def get_partner(db: Session, partner_id: str) -> Optional[Partner]:
    return db.get(Partner, partner_id)


def get_pending_payout(db: Session, partner_id: str) -> Decimal:
    """直接读列值，绕开 session 里可能过期的 Partner 对象"""
    value = db.scalar(select(Partner.pending_payout).where(Partner.id == partner_id))
    return Decimal(value or 0)


# ---------- transactions ----------
def get_transaction(db: Session, booking_id: str, transaction_type: str) -> Optional[PartnerTransaction]:
    stmt = (
        select(PartnerTransaction)
        .where(PartnerTransaction.booking_id == booking_id)
        .where(PartnerTransaction.transaction_type == transaction_type)
    )
    return db.scalars(stmt).first()


def has_approved_commission(db: Session, booking_id: str) -> bool:
    return get_transaction(db, booking_id, COMMISSION_APPROVED) is not None


def add_pending_commission(db: Session, partner_id: str, booking_id: str, b: CommissionBreakdown) -> PartnerTransaction:
    row = PartnerTransaction(
        partner_id=partner_id,
        booking_id=booking_id,
        transaction_type=COMMISSION_PENDING,
        amount=b.commission,
        platform_fee=b.platform_fee,
        net_amount=b.net,
        status="pending",
    )
    db.add(row)
    return row


def add_approved_commission(
    db: Session,
    partner_id: str,
    booking_id: str,
    b: CommissionBreakdown,
    now: datetime,
) -> PartnerTransaction:
    """夜间结算直接写入 approved 行；并发重复时唯一键 (booking_id, transaction_type) 在 flush 报 IntegrityError"""
    row = PartnerTransaction(
        partner_id=partner_id,
        booking_id=booking_id,
        transaction_type=COMMISSION_APPROVED,
        amount=b.commission,
        platform_fee=b.platform_fee,
        net_amount=b.net,
        status="approved",
        transaction_date=now,
        approved_at=now,
    )
    db.add(row)
    return row


def approve_pending_commission(db: Session, booking_id: str, now: datetime) -> Optional[PartnerTransaction]:
    """
    commission_pending -> commission_approved（同一行翻转）
    已存在 approved 行（夜间结算先到）时不动，返回 None
    """
    if has_approved_commission(db, booking_id):
        return None
    row = get_transaction(db, booking_id, COMMISSION_PENDING)
    if row is None:
        return None
    row.transaction_type = COMMISSION_APPROVED
    row.status = "approved"
    row.approved_at = now
    row.transaction_date = row.transaction_date or now
    return row


def credit_partner(db: Session, partner_id: str, net_amount: Decimal) -> None:
    """累加计数器（SQL 自增表达式）"""
    db.execute(
        update(Partner)
        .where(Partner.id == partner_id)
        .values(
            total_earnings=Partner.total_earnings + net_amount,
            pending_payout=Partner.pending_payout + net_amount,
            total_bookings=Partner.total_bookings + 1,
        )
    )


# ---------- daily stats ----------
def upsert_daily_stats(db: Session, partner_id: str, day: date, totals: PartnerDayTotals) -> PartnerDailyStats:
    """按 (partner_id, date) 覆盖写入"""
    stmt = (
        select(PartnerDailyStats)
        .where(PartnerDailyStats.partner_id == partner_id)
        .where(PartnerDailyStats.date == day)
    )
    row = db.scalars(stmt).first()
    if row is None:
        row = PartnerDailyStats(partner_id=partner_id, date=day)
        db.add(row)
    row.bookings_count = totals.bookings_count
    row.total_revenue = totals.total_revenue
    row.commission_earned = totals.commission_earned
    row.platform_fees = totals.platform_fees
    return row


# ---------- payouts ----------
def list_unpaid_approved(db: Session, partner_id: str) -> list[PartnerTransaction]:
    stmt = (
        select(PartnerTransaction)
        .where(PartnerTransaction.partner_id == partner_id)
        .where(PartnerTransaction.status == "approved")
        .where(PartnerTransaction.payout_id.is_(None))
        .order_by(PartnerTransaction.created_at.asc())
    )
    return list(db.scalars(stmt))


def create_payout(db: Session, partner_id: str, payout_date: date,
                  transactions: list[PartnerTransaction]) -> PartnerPayout:
    """汇总 net_amount 建打款单，并把 payout_id 回写到每条流水上"""
    total = sum((Decimal(t.net_amount or 0) for t in transactions), Decimal("0"))
    payout = PartnerPayout(
        partner_id=partner_id,
        payout_date=payout_date,
        amount=total,
        status="pending",
        included_transactions=[t.id for t in transactions],
    )
    db.add(payout)
    db.flush()

    for t in transactions:
        t.payout_id = payout.id
    return payout
