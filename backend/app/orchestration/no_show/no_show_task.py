from __future__ import annotations
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from celery import shared_task
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.model.billing import PaymentTransaction
from app.db.session import SessionLocal
from app.repository import booking_repo, customer_repo, fleet_repo, ops_repo
from app.repository.booking_repo import SERVED_ASSIGNMENT_STATUSES
from app.utils.clock import as_utc, now_utc

configure_logging()
logger = logging.getLogger(__name__)

AUTOMATION_NAME = "handle-no-shows"


"""
no-show 扫描（beat 定时 / 手动触发）
    候选：workflow ∈ {assigned, confirmed, driver_en_route}、已付款、接客时间早于 now - 30 分钟
    当前派车记录缺失或状态不在 {arrived, in_progress, completed} 的才算 no-show：
        booking -> no_show；派车记录取消并释放车辆；客户 no_show_count +1、活动日志、-50 待收罚金；高优先级后台通知
"""
@shared_task(name="app.orchestration.no_show.no_show_task.handle_no_shows")
def handle_no_shows(trigger: str = "scheduled"):

    started = now_utc()
    db = SessionLocal()
    try:
        try:
            booking_ids = sweep_no_shows(db, started)
        except Exception as e:
            db.rollback()
            logger.exception("no-show sweep failed")
            ops_repo.log_automation_run(
                db, AUTOMATION_NAME,
                status="error",
                started_at=started,
                completed_at=now_utc(),
                errors_count=1,
                error_message=str(e),
                trigger_type=trigger,
            )
            return {"success": False, "error": str(e)}

        ops_repo.log_automation_run(
            db, AUTOMATION_NAME,
            status="success",
            started_at=started,
            completed_at=now_utc(),
            records_processed=len(booking_ids),
            trigger_type=trigger,
        )
        if booking_ids:
            logger.info("no-show sweep flagged %s bookings", len(booking_ids))
        return {"success": True, "no_shows_detected": len(booking_ids), "booking_ids": booking_ids}
    finally:
        db.close()


def sweep_no_shows(db: Session, now: Optional[datetime] = None) -> list[str]:
    now = now or now_utc()
    cutoff = now - timedelta(minutes=settings.NO_SHOW_GRACE_MINUTES)
    penalty = Decimal(str(settings.NO_SHOW_PENALTY))
    flagged: list[str] = []

    for booking in booking_repo.list_no_show_candidates(db, cutoff):
        assignment = booking_repo.current_assignment_for_booking(db, booking.id)
        if assignment is not None and assignment.status in SERVED_ASSIGNMENT_STATUSES:
            continue

        pickup_iso = as_utc(booking.pickup_datetime).isoformat() if booking.pickup_datetime else None
        booking.workflow_status = "no_show"

        if assignment is not None:
            assignment.status = "cancelled"
            assignment.cancelled_at = now
            assignment.cancellation_reason = "Customer no-show"
            if assignment.vehicle_id:
                fleet_repo.set_vehicle_status(db, assignment.vehicle_id, "available")

        if booking.customer_id:
            customer_repo.increment_no_show(db, booking.customer_id)
            customer_repo.log_activity(db, booking.customer_id, "no_show", {
                "booking_id": booking.id,
                "pickup_time": pickup_iso,
            })
            db.add(PaymentTransaction(
                booking_id=booking.id,
                customer_id=booking.customer_id,
                amount=-penalty,
                payment_method="penalty",
                transaction_type="no_show_fee",
                status="pending",
                transaction_date=now,
            ))

        ops_repo.notify_admin(
            db,
            "no_show_detected",
            f"Customer no-show detected for booking {booking.id}",
            {"booking_id": booking.id, "customer_id": booking.customer_id, "pickup_time": pickup_iso},
            priority="high",
        )
        db.commit()
        flagged.append(booking.id)

    return flagged
