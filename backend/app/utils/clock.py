from __future__ import annotations
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """sqlite 读回来是 naive，统一当作 UTC；带时区的转换到 UTC。"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def today_utc() -> date:
    return now_utc().date()


def day_window(day: date) -> Tuple[datetime, datetime]:
    """[day 00:00, day+1 00:00) in UTC"""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)
