''' 定时任务的手动触发入口（需要 service key） '''

from __future__ import annotations
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.orchestration.no_show.no_show_task import handle_no_shows
from app.orchestration.partner_commissions.commission_task import calculate_partner_commissions
from app.services.auth_service import require_service_key

router = APIRouter(
    prefix="/automation",
    tags=["automation"],
    dependencies=[Depends(require_service_key)],
)


class CommissionRunIn(BaseModel):
    run_date: Optional[date] = None      # 默认昨天（UTC）
    run_async: bool = False              # True: 投递到 worker，只返回 task_id


class SweepIn(BaseModel):
    run_async: bool = False


''' 结算某一天的合作方佣金 '''
@router.post("/calculate-partner-commissions")
def trigger_partner_commissions(payload: Optional[CommissionRunIn] = None):
    payload = payload or CommissionRunIn()
    run_date = payload.run_date.isoformat() if payload.run_date else None
    if payload.run_async:
        task_id = calculate_partner_commissions.delay(run_date, "manual").id
        return {"task_id": task_id}
    return calculate_partner_commissions.run(run_date, trigger="manual")


''' 立即扫一次 no-show '''
@router.post("/handle-no-shows")
def trigger_no_show_sweep(payload: Optional[SweepIn] = None):
    if payload is not None and payload.run_async:
        task_id = handle_no_shows.delay("manual").id
        return {"task_id": task_id}
    return handle_no_shows.run(trigger="manual")
