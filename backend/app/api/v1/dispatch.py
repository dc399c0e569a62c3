from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.auth_service import require_service_key
from app.services.dispatch.auto_dispatch import auto_dispatch

router = APIRouter(
    prefix="/dispatch",
    tags=["dispatch"],
    dependencies=[Depends(require_service_key)],
)


class AutoDispatchIn(BaseModel):
    booking_id: str
    preferred_driver_id: Optional[str] = None
    vehicle_type: Optional[str] = None


@router.post("/auto-dispatch")
def post_auto_dispatch(payload: AutoDispatchIn, db: Session = Depends(get_db)):
    return auto_dispatch(
        db,
        payload.booking_id,
        preferred_driver_id=payload.preferred_driver_id,
        vehicle_type=payload.vehicle_type,
    )
