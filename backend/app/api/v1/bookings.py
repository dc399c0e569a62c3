''' 订单生命周期接口：新订单 / 付款确认 / 完单 / 取消申请 '''

from __future__ import annotations
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.booking.lifecycle import (
    PaymentConfirmation,
    complete_booking,
    confirm_payment,
    handle_new_booking,
    request_cancellation,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])


class NewBookingIn(BaseModel):
    booking_id: str


class PaymentConfirmationIn(BaseModel):
    booking_id: str
    payment_method: str
    amount_paid: Decimal = Field(ge=0)
    stripe_payment_id: Optional[str] = None


class CompletionIn(BaseModel):
    assignment_id: str


class CancellationIn(BaseModel):
    # token 缺失由 service 返回 400 "Missing cancellation token"
    token: Optional[str] = None
    reason: Optional[str] = None


@router.post("/handle-new-booking")
def post_new_booking(payload: NewBookingIn, db: Session = Depends(get_db)):
    return handle_new_booking(db, payload.booking_id)


@router.post("/handle-payment-confirmation")
def post_payment_confirmation(payload: PaymentConfirmationIn, db: Session = Depends(get_db)):
    return confirm_payment(db, PaymentConfirmation(
        booking_id=payload.booking_id,
        payment_method=payload.payment_method,
        amount_paid=payload.amount_paid,
        stripe_payment_id=payload.stripe_payment_id,
    ))


@router.post("/handle-booking-completion")
def post_booking_completion(payload: CompletionIn, db: Session = Depends(get_db)):
    return complete_booking(db, payload.assignment_id)


@router.post("/request-cancellation")
def post_request_cancellation(payload: CancellationIn, db: Session = Depends(get_db)):
    return request_cancellation(db, payload.token, payload.reason)
