from __future__ import annotations
import logging
from typing import Optional

from celery import shared_task

from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.services.dispatch.auto_dispatch import auto_dispatch
from app.services.errors import BookingServiceError

configure_logging()
logger = logging.getLogger(__name__)


'''
付款确认后 24h 内接客的订单会投递到这里
    - 派不出去（无车/无司机/已派）只记 warning，调度员人工处理
'''
@shared_task(name="app.orchestration.dispatch.auto_dispatch_task.auto_dispatch_booking")
def auto_dispatch_booking(booking_id: str, preferred_driver_id: Optional[str] = None,
                          vehicle_type: Optional[str] = None):

    logger.info("auto_dispatch_booking start booking=%s", booking_id)
    db = SessionLocal()
    try:
        return auto_dispatch(db, booking_id, preferred_driver_id=preferred_driver_id, vehicle_type=vehicle_type)
    except BookingServiceError as e:
        db.rollback()
        logger.warning("auto dispatch skipped booking=%s: %s", booking_id, e.message)
        return {"success": False, "booking_id": booking_id, "error": e.message}
    finally:
        db.close()
