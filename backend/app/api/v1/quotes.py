''' 报价接口（公开）：单车型报价 + 多车型比价 '''

from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.services.pricing.quote_calculator import (
    QuoteRequest,
    VehicleQuoteRequest,
    calculate_quote,
    calculate_vehicle_quotes,
)

router = APIRouter(tags=["quotes"])


class CalculateQuoteIn(BaseModel):
    from_address: str
    to_address: str
    vehicle_type: str
    pickup_datetime: Optional[str] = None
    trip_type: Optional[str] = "one-way"
    passenger_count: Optional[int] = Field(default=None, ge=1)
    luggage_count: Optional[int] = Field(default=None, ge=0)
    customer_id: Optional[str] = None


class VehicleQuotesIn(BaseModel):
    # origin/destination 与 pickup_location/dropoff_location 二选一
    origin: Optional[str] = None
    pickup_location: Optional[str] = None
    destination: Optional[str] = None
    dropoff_location: Optional[str] = None
    passengers: Optional[int] = Field(default=None, ge=1)
    luggage: Optional[int] = Field(default=None, ge=0)
    trip_type: Optional[str] = None


@router.post("/calculate-quote")
def post_calculate_quote(payload: CalculateQuoteIn, db: Session = Depends(get_db)):
    quote = calculate_quote(db, QuoteRequest(
        from_address=payload.from_address,
        to_address=payload.to_address,
        vehicle_type=payload.vehicle_type,
        pickup_datetime=payload.pickup_datetime,
        trip_type=payload.trip_type or "one-way",
        passenger_count=payload.passenger_count,
        luggage_count=payload.luggage_count,
    ))
    return {"success": True, "quote": quote}


@router.post("/vehicle-quotes")
def post_vehicle_quotes(payload: VehicleQuotesIn, db: Session = Depends(get_db)):
    return calculate_vehicle_quotes(db, VehicleQuoteRequest(
        origin=payload.origin or payload.pickup_location or "",
        destination=payload.destination or payload.dropoff_location or "",
        passengers=payload.passengers,
        luggage=payload.luggage,
        trip_type=payload.trip_type,
    ))
