from __future__ import annotations
import logging
from typing import Optional

from celery import shared_task

from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.integrations.resend.errors import EmailError
from app.services.errors import BookingServiceError
from app.services.notifications.booking_emails import send_booking_email

configure_logging()
logger = logging.getLogger(__name__)


'''
订单邮件发送任务（fire-and-forget）
    - 不重试：发送失败只记 warning，返回 {"sent": False, ...}
'''
@shared_task(name="app.orchestration.notifications.email_task.send_booking_email_task")
def send_booking_email_task(booking_id: str, email_type: str, admin_email: Optional[str] = None):

    db = SessionLocal()
    try:
        result = send_booking_email(db, booking_id, email_type, admin_email=admin_email)
        return {"sent": True, **result}
    except (EmailError, BookingServiceError) as e:
        logger.warning("booking email not sent booking=%s type=%s err=%s", booking_id, email_type, e)
        return {"sent": False, "email_type": email_type, "error": str(e)}
    finally:
        db.close()
