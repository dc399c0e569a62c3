"""
订单邮件：
    - confirmation: 发给客户的预订确认
    - admin_notification: 发给运营/调度邮箱（新订单、取消申请）
邮件内容只拼简单 HTML；发送失败抛 EmailError，由任务层记录日志
"""

from __future__ import annotations
import logging
from html import escape
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.model.booking import Booking
from app.integrations.resend import ResendClient
from app.integrations.resend.errors import EmailConfigError
from app.repository import booking_repo
from app.services.errors import NotFound, ValidationFailed
from app.utils.clock import as_utc

logger = logging.getLogger(__name__)

EMAIL_TYPES = ("confirmation", "admin_notification")


def _booking_rows(booking: Booking) -> str:
    pickup = as_utc(booking.pickup_datetime)
    rows = [
        ("Reference", booking.reference or booking.id),
        ("Service", booking.service_type or "Transfer"),
        ("Vehicle", booking.vehicle_type or "-"),
        ("Pickup", booking.pickup_location or "-"),
        ("Drop-off", booking.dropoff_location or "-"),
        ("Pickup time (UTC)", pickup.strftime("%Y-%m-%d %H:%M") if pickup else "-"),
        ("Price", f"{settings.QUOTE_CURRENCY} {booking.price}"),
    ]
    return "".join(f"<tr><td>{escape(k)}</td><td>{escape(str(v))}</td></tr>" for k, v in rows)


def render_booking_email(booking: Booking, email_type: str) -> Tuple[str, str]:
    """返回 (subject, html)"""
    ref = booking.reference or booking.id
    table = f"<table>{_booking_rows(booking)}</table>"

    if email_type == "confirmation":
        name = escape(booking.customer_name or "traveller")
        subject = f"Your booking {ref} is confirmed"
        html = f"<p>Hi {name},</p><p>Thank you for booking with us. Your trip details:</p>{table}"
        return subject, html

    if email_type == "admin_notification":
        subject = f"[Booking] {ref} {booking.workflow_status}"
        contact = escape(f"{booking.customer_name or '-'} <{booking.customer_email or '-'}> {booking.customer_phone or ''}")
        html = f"<p>Booking update: <b>{escape(booking.workflow_status)}</b></p><p>Customer: {contact}</p>{table}"
        return subject, html

    raise ValidationFailed(f"Unknown email type '{email_type}'")


def send_booking_email(
    db: Session,
    booking_id: str,
    email_type: str,
    admin_email: Optional[str] = None,
    client: Optional[ResendClient] = None,
) -> Dict[str, Any]:
    booking = booking_repo.get_booking(db, booking_id)
    if booking is None:
        raise NotFound("Booking not found")

    if email_type == "confirmation":
        to = booking.customer_email
    else:
        to = admin_email or settings.ADMIN_NOTIFICATION_EMAIL
    if not to:
        raise EmailConfigError(f"no recipient for {email_type} email of booking {booking_id}")

    subject, html = render_booking_email(booking, email_type)
    payload = (client or ResendClient()).send(to, subject, html, tags={"email_type": email_type})
    return {"email_type": email_type, "to": to, "id": payload.get("id")}
