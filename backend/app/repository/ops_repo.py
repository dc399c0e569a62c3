# admin notifications + automation run logs

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.db.model.ops import AdminNotification, AutomationLog


def notify_admin(db: Session, type_: str, message: str, data: Dict[str, Any], priority: str = "normal") -> AdminNotification:
    row = AdminNotification(type=type_, message=message, data=data, priority=priority)
    db.add(row)
    return row


def log_automation_run(
    db: Session,
    name: str,
    *,
    status: str,
    started_at: datetime,
    completed_at: Optional[datetime] = None,
    records_processed: int = 0,
    errors_count: int = 0,
    error_message: Optional[str] = None,
    trigger_type: str = "scheduled",
) -> AutomationLog:
    """写一条运行记录并立即提交（独立短事务）"""
    row = AutomationLog(
        automation_name=name,
        trigger_type=trigger_type,
        execution_status=status,
        records_processed=records_processed,
        errors_count=errors_count,
        error_message=error_message,
        started_at=started_at,
        completed_at=completed_at,
    )
    db.add(row)
    db.commit()
    return row
