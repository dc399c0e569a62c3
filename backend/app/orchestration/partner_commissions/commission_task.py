from __future__ import annotations
import logging
from datetime import date, timedelta
from typing import Any, Dict, Optional, Set

from celery import shared_task
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.repository import booking_repo, ops_repo, partner_repo
from app.services.commission.commission_calc import PartnerDayTotals, compute_commission
from app.utils.clock import day_window, now_utc

configure_logging()
logger = logging.getLogger(__name__)

AUTOMATION_NAME = "calculate-partner-commissions"


'''
夜间合作方佣金结算（beat 每天一次，也可手动触发）
    - 窗口：run_date 当天 [00:00, 次日 00:00) UTC，默认昨天
    - 每单：已有 commission_approved 就跳过；否则写 approved 流水 + 合作方计数器累加
    - 每单一个短事务提交；唯一键冲突（并发重复结算）回滚这一单并跳过
    - 全部处理完后：新结算的合作方覆盖写 daily stats；窗口内所有有完单的合作方，pending_payout >= 阈值则把未打款的 approved 流水打包成 payout
'''
@shared_task(name="app.orchestration.partner_commissions.commission_task.calculate_partner_commissions")
def calculate_partner_commissions(run_date: Optional[str] = None, trigger: str = "scheduled"):

    started = now_utc()
    day = date.fromisoformat(run_date) if run_date else started.date() - timedelta(days=1)
    logger.info("========  calculate_partner_commissions start date=%s trigger=%s  ========", day, trigger)

    db = SessionLocal()
    try:
        try:
            result = settle_partner_commissions(db, day)
        except Exception as e:
            db.rollback()
            logger.exception("commission settlement failed date=%s", day)
            ops_repo.log_automation_run(
                db, AUTOMATION_NAME,
                status="error",
                started_at=started,
                completed_at=now_utc(),
                errors_count=1,
                error_message=str(e),
                trigger_type=trigger,
            )
            return {"success": False, "date": day.isoformat(), "error": str(e)}

        ops_repo.log_automation_run(
            db, AUTOMATION_NAME,
            status="success",
            started_at=started,
            completed_at=now_utc(),
            records_processed=result["trips_processed"],
            trigger_type=trigger,
        )
        logger.info("======== calculate_partner_commissions end processed=%s ========", result["trips_processed"])
        return result
    finally:
        db.close()


def settle_partner_commissions(db: Session, day: date) -> Dict[str, Any]:
    start, end = day_window(day)
    trips = booking_repo.list_completed_partner_trips(db, start, end)
    now = now_utc()

    totals: Dict[str, PartnerDayTotals] = {}
    affected: Set[str] = set()     # 窗口内有完单的合作方，含已 approved 跳过的
    processed = 0
    skipped = 0

    # 1) 逐单结算
    for trip in trips:
        booking = trip.booking
        partner = partner_repo.get_partner(db, booking.partner_id) if booking.partner_id else None
        if partner is None:
            continue
        affected.add(partner.id)

        # 幂等：已 approved（完单时翻转过 / 之前跑过）
        if partner_repo.has_approved_commission(db, booking.id):
            skipped += 1
            continue

        b = compute_commission(booking.price, partner.commission_rate)
        partner_repo.add_approved_commission(db, partner.id, booking.id, b, now)
        partner_repo.credit_partner(db, partner.id, b.net)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("duplicate commission_approved for booking %s, skipped", booking.id)
            skipped += 1
            continue

        totals.setdefault(partner.id, PartnerDayTotals()).add(b)
        processed += 1

    # 2) 日统计 + 打款
    payouts = []
    threshold = settings.PAYOUT_THRESHOLD
    for partner_id in sorted(affected):
        # 日统计只记本次新结算的单；阈值检查对所有受影响合作方都做（完单时已 approved 的也要能打款）
        if partner_id in totals:
            partner_repo.upsert_daily_stats(db, partner_id, day, totals[partner_id])
            db.flush()

        if partner_repo.get_pending_payout(db, partner_id) >= threshold:
            unpaid = partner_repo.list_unpaid_approved(db, partner_id)
            if unpaid:
                payout = partner_repo.create_payout(db, partner_id, now.date(), unpaid)
                payouts.append({"payout_id": payout.id, "partner_id": partner_id,
                                "amount": float(payout.amount), "transactions": len(unpaid)})
                logger.info("payout created partner=%s amount=%s txs=%s", partner_id, payout.amount, len(unpaid))
        db.commit()

    return {
        "success": True,
        "date": day.isoformat(),
        "trips_processed": processed,
        "trips_skipped": skipped,
        "partners_affected": len(affected),
        "commissions_by_partner": {pid: t.as_dict() for pid, t in totals.items()},
        "payouts_created": payouts,
    }
