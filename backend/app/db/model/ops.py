from __future__ import annotations
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, JSONType, new_id


class AdminNotification(Base):

    __tablename__ = "admin_notifications"

    id:       Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    type:     Mapped[str] = mapped_column(String(32), nullable=False, index=True)   # new_booking / payment_received / no_show_detected
    message:  Mapped[str] = mapped_column(Text, nullable=False)
    data:     Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="normal")

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())


"""
  automation_logs: 定时任务（结算 / no-show 扫描）每次运行一条
"""
class AutomationLog(Base):

    __tablename__ = "automation_logs"

    id:                Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    automation_name:   Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    trigger_type:      Mapped[str] = mapped_column(String(16), nullable=False, default="scheduled")   # scheduled / manual
    execution_status:  Mapped[str] = mapped_column(String(16), nullable=False)                        # success / error
    records_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors_count:      Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message:     Mapped[Optional[str]] = mapped_column(Text)
    started_at:        Mapped[object] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at:      Mapped[Optional[object]] = mapped_column(DateTime(timezone=True))
