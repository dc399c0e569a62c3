"""
订单生命周期处理（每个入口一段顺序读写，最后 commit，再投递附带动作）

    handle_new_booking      新订单：客户 upsert + 活动日志 + 后台通知 + 确认/通知邮件
    confirm_payment         付款确认：paid + awaiting_assignment + 收款流水 + 待结佣金 + 24h 内自动派车
    complete_booking        完单：发票 + 客户统计 + 评价邀请 + 佣金转 approved + 里程 + 完单邮件标记
    request_cancellation    取消申请：校验 token，记录原因/时间，通知调度邮箱

没有状态机：乱序调用不会被拦截；计数器自增不是幂等的，重复调用会重复累加
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.model.billing import Invoice, PaymentTransaction, ReviewRequest
from app.orchestration.background import fire_and_forget
from app.orchestration.dispatch.auto_dispatch_task import auto_dispatch_booking
from app.orchestration.notifications.email_task import send_booking_email_task
from app.repository import booking_repo, customer_repo, fleet_repo, ops_repo, partner_repo
from app.repository.partner_repo import COMMISSION_PENDING
from app.services.commission.commission_calc import compute_commission
from app.services.errors import AlreadyProcessed, NotFound, ValidationFailed
from app.utils.clock import as_utc, now_utc

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(slots=True)
class PaymentConfirmation:
    booking_id: str
    payment_method: str
    amount_paid: Decimal
    stripe_payment_id: Optional[str] = None


def _money(v: Decimal) -> Decimal:
    return Decimal(v).quantize(CENT, rounding=ROUND_HALF_UP)


def _iso(v) -> Optional[str]:
    v = as_utc(v)
    return v.isoformat() if v else None


# ============================== new booking ==============================
def handle_new_booking(db: Session, booking_id: str) -> Dict[str, Any]:
    if not booking_id:
        raise ValidationFailed("Missing required fields: booking_id")
    booking = booking_repo.get_booking(db, booking_id)
    if booking is None:
        raise NotFound("Booking not found")

    today = now_utc().date()
    customer = None

    # 1) 按邮箱 upsert 客户
    if booking.customer_email:
        customer = customer_repo.get_by_email(db, booking.customer_email)
        if customer is not None:
            customer_repo.register_repeat_booking(db, customer, today)
        else:
            customer = customer_repo.create_customer(
                db,
                email=booking.customer_email,
                full_name=booking.customer_name,
                phone=booking.customer_phone,
                today=today,
            )

        booking.customer_id = customer.id
        customer_repo.log_activity(db, customer.id, "booking_created", {
            "booking_id": booking.id,
            "service_type": booking.service_type,
            "amount": float(booking.price or 0),
        })

    # 2) 后台通知
    ops_repo.notify_admin(
        db,
        "new_booking",
        f"New booking received: {booking.service_type or 'Transfer'}",
        {
            "booking_id": booking.id,
            "customer_id": customer.id if customer else None,
            "pickup_datetime": _iso(booking.pickup_datetime),
            "price": float(booking.price or 0),
        },
        priority="high",
    )
    db.commit()

    # 3) 邮件（失败只记日志）
    fire_and_forget(send_booking_email_task, booking.id, "admin_notification", settings.ADMIN_NOTIFICATION_EMAIL)
    fire_and_forget(send_booking_email_task, booking.id, "confirmation")

    logger.info("new booking handled booking=%s customer=%s", booking.id, customer.id if customer else None)
    return {
        "success": True,
        "booking_id": booking.id,
        "customer_id": customer.id if customer else None,
        "notifications_sent": True,
        "admin_email_sent_to": settings.ADMIN_NOTIFICATION_EMAIL,
        "customer_confirmation_sent_to": booking.customer_email,
    }


# ============================== payment ==============================
def confirm_payment(db: Session, payment: PaymentConfirmation) -> Dict[str, Any]:
    booking = booking_repo.get_booking(db, payment.booking_id)
    if booking is None:
        raise NotFound("Booking not found")

    now = now_utc()
    amount = _money(payment.amount_paid)

    # 1) 订单状态
    booking.payment_status = "paid"
    booking.workflow_status = "awaiting_assignment"

    # 2) 收款流水
    db.add(PaymentTransaction(
        booking_id=booking.id,
        customer_id=booking.customer_id,
        amount=amount,
        payment_method=payment.payment_method,
        transaction_type="payment",
        stripe_payment_id=payment.stripe_payment_id,
        status="completed",
        transaction_date=now,
    ))

    # 3) 客户累计消费
    if booking.customer_id:
        customer_repo.add_spent(db, booking.customer_id, amount)
        customer_repo.log_activity(db, booking.customer_id, "payment_received", {
            "booking_id": booking.id,
            "amount": float(amount),
            "method": payment.payment_method,
        })

    # 4) 合作方待结佣金（按实付金额计算）
    if booking.partner_id:
        partner = partner_repo.get_partner(db, booking.partner_id)
        if partner is None:
            logger.warning("booking %s references missing partner %s", booking.id, booking.partner_id)
        elif partner_repo.get_transaction(db, booking.id, COMMISSION_PENDING) is not None:
            logger.info("pending commission already recorded for booking %s", booking.id)
        else:
            partner_repo.add_pending_commission(
                db, partner.id, booking.id, compute_commission(amount, partner.commission_rate)
            )

    # 5) 后台通知
    ops_repo.notify_admin(
        db,
        "payment_received",
        f"Payment received for booking {booking.id}",
        {"booking_id": booking.id, "amount": float(amount), "customer_id": booking.customer_id},
        priority="normal",
    )
    db.commit()

    # 6) 24 小时内接客 -> 自动派车（不等待结果）
    pickup = as_utc(booking.pickup_datetime)
    hours_until_pickup = (pickup - now).total_seconds() / 3600 if pickup else None
    dispatch = hours_until_pickup is not None and 0 < hours_until_pickup <= settings.AUTO_DISPATCH_WINDOW_HOURS
    if dispatch:
        fire_and_forget(auto_dispatch_booking, booking.id)

    logger.info("payment confirmed booking=%s amount=%s auto_dispatch=%s", booking.id, amount, dispatch)
    return {
        "success": True,
        "booking_id": booking.id,
        "workflow_status": "awaiting_assignment",
        "auto_dispatch_triggered": dispatch,
    }


# ============================== completion ==============================
def complete_booking(db: Session, assignment_id: str) -> Dict[str, Any]:
    if not assignment_id:
        raise ValidationFailed("Missing required fields: assignment_id")
    assignment = booking_repo.get_assignment(db, assignment_id)
    if assignment is None:
        raise NotFound("Assignment not found")
    booking = assignment.booking

    now = now_utc()
    today = now.date()

    # 1) 状态
    booking.workflow_status = "completed"
    if assignment.status != "completed":
        assignment.status = "completed"
    if assignment.dropoff_completed_at is None:
        assignment.dropoff_completed_at = now

    # 2) 发票
    subtotal = _money(booking.price or 0)
    tax_rate = Decimal(str(settings.INVOICE_TAX_RATE))
    tax_amount = _money(subtotal * tax_rate)
    invoice = Invoice(
        booking_id=booking.id,
        customer_id=booking.customer_id,
        assignment_id=assignment.id,
        invoice_date=today,
        due_date=today + timedelta(days=settings.INVOICE_DUE_DAYS),
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        total_amount=subtotal + tax_amount,
        status="sent",
        line_items=[{
            "description": booking.service_type or "Transportation Service",
            "quantity": 1,
            "unit_price": float(subtotal),
            "total": float(subtotal),
        }],
    )
    db.add(invoice)

    # 3) 客户统计 + 评价邀请 + 活动日志
    review_created = False
    if booking.customer_id:
        customer_repo.record_completed_trip(db, booking.customer_id, subtotal, today)
        db.add(ReviewRequest(
            booking_id=booking.id,
            customer_id=booking.customer_id,
            driver_id=assignment.driver_id,
            status="pending",
            expires_at=now + timedelta(days=settings.REVIEW_REQUEST_TTL_DAYS),
        ))
        review_created = True
        customer_repo.log_activity(db, booking.customer_id, "trip_completed", {
            "booking_id": booking.id,
            "driver_id": assignment.driver_id,
            "completion_time": _iso(assignment.dropoff_completed_at),
            "amount": float(subtotal),
        })

    # 4) 待结佣金 -> approved，并给合作方记账（夜间结算看到 approved 会跳过）
    commission_approved = False
    if booking.partner_id:
        tx = partner_repo.approve_pending_commission(db, booking.id, now)
        if tx is not None:
            partner_repo.credit_partner(db, tx.partner_id, Decimal(tx.net_amount))
            commission_approved = True

    # 5) 里程（固定值）
    if assignment.vehicle_id:
        fleet_repo.add_mileage(db, assignment.vehicle_id, settings.MILEAGE_PER_TRIP)

    booking.completion_email_sent = True
    db.flush()
    db.commit()

    logger.info("booking completed booking=%s invoice=%s commission_approved=%s",
                booking.id, invoice.id, commission_approved)
    return {
        "success": True,
        "booking_id": booking.id,
        "invoice_id": invoice.id,
        "review_request_created": review_created,
        "commission_approved": commission_approved,
        "workflow_status": "completed",
    }


# ============================== cancellation ==============================
def request_cancellation(db: Session, token: Optional[str], reason: Optional[str] = None) -> Dict[str, Any]:
    if not token:
        raise ValidationFailed("Missing cancellation token")

    req = booking_repo.get_cancellation_by_token(db, token)
    if req is None:
        raise NotFound("Invalid or expired cancellation token")
    if req.status != "pending":
        raise AlreadyProcessed(f"This cancellation request has already been {req.status}")

    booking = req.booking
    if booking.status == "cancelled":
        raise AlreadyProcessed("This booking has already been cancelled")

    # status 保持 pending，等人工审核；metadata 记录提交时间
    now = now_utc()
    req.reason = reason or None
    req.requested_at = now
    req.meta = {**(req.meta or {}), "submitted_at": now.isoformat(), "reason_provided": bool(reason)}
    db.commit()

    fire_and_forget(send_booking_email_task, booking.id, "admin_notification", settings.DISPATCH_NOTIFICATION_EMAIL)

    logger.info("cancellation requested booking=%s reason_provided=%s", booking.id, bool(reason))
    return {
        "success": True,
        "message": "Cancellation request submitted successfully",
        "booking": {"reference": booking.reference, "id": booking.id},
    }
