from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.repository import pricing_repo
from app.repository.pricing_repo import PricingRuleDTO
from app.services.auth_service import require_service_key
from app.services.errors import NotFound, VehicleTypeNotFound
from app.db.model.fleet import VehicleType
from app.utils.clock import as_utc

router = APIRouter(
    prefix="/pricing",
    tags=["pricing"],
    dependencies=[Depends(require_service_key)],
)


class PricingRuleIn(BaseModel):
    origin: str
    destination: str
    vehicle_type_id: str
    base_price: Decimal = Field(gt=0)
    no_discount_allowed: bool = False
    priority: int = 0
    zone: Optional[str] = None
    is_active: bool = True


class PricingRulePatch(BaseModel):
    origin: Optional[str] = None
    destination: Optional[str] = None
    base_price: Optional[Decimal] = Field(default=None, gt=0)
    no_discount_allowed: Optional[bool] = None
    priority: Optional[int] = None
    zone: Optional[str] = None
    is_active: Optional[bool] = None


class PricingRuleOut(BaseModel):
    id: str
    origin: str
    destination: str
    vehicle_type_id: str
    base_price: float
    no_discount_allowed: bool
    priority: int
    zone: Optional[str] = None
    is_active: bool


class DiscountIn(BaseModel):
    discount_percentage: Decimal = Field(ge=0, le=100)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class DiscountOut(BaseModel):
    id: Optional[str] = None
    discount_percentage: float = 0
    is_active: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


# ---------- rules ----------
@router.get("/rules", response_model=List[PricingRuleOut])
def get_rules(response: Response, include_inactive: bool = False, db: Session = Depends(get_db)):
    response.headers["Cache-Control"] = "no-store"
    return [_serialize_rule(r) for r in pricing_repo.list_rules(db, include_inactive=include_inactive)]


@router.post("/rules", response_model=PricingRuleOut, status_code=201)
def post_rule(payload: PricingRuleIn, db: Session = Depends(get_db)):
    if db.get(VehicleType, payload.vehicle_type_id) is None:
        raise VehicleTypeNotFound(f"Vehicle type '{payload.vehicle_type_id}' not found")
    row = pricing_repo.create_rule(db, PricingRuleDTO(**payload.model_dump()))
    return _serialize_rule(row)


@router.patch("/rules/{rule_id}", response_model=PricingRuleOut)
def patch_rule(rule_id: str, payload: PricingRulePatch, db: Session = Depends(get_db)):
    row = pricing_repo.get_rule(db, rule_id)
    if row is None:
        raise NotFound("Pricing rule not found")
    update_data = payload.model_dump(exclude_none=True)
    if update_data:
        row = pricing_repo.update_rule(db, row, update_data)
    return _serialize_rule(row)


# ---------- global discount ----------
@router.get("/discount", response_model=DiscountOut)
def get_discount(response: Response, db: Session = Depends(get_db)):
    response.headers["Cache-Control"] = "no-store"
    row = pricing_repo.get_active_discount(db)
    return _serialize_discount(row) if row else DiscountOut()


@router.put("/discount", response_model=DiscountOut)
def put_discount(payload: DiscountIn, db: Session = Depends(get_db)):
    row = pricing_repo.replace_active_discount(
        db, payload.discount_percentage, start_date=payload.start_date, end_date=payload.end_date
    )
    return _serialize_discount(row)


def _serialize_rule(row: Any) -> PricingRuleOut:
    return PricingRuleOut(
        id=row.id,
        origin=row.origin,
        destination=row.destination,
        vehicle_type_id=row.vehicle_type_id,
        base_price=float(row.base_price),
        no_discount_allowed=bool(row.no_discount_allowed),
        priority=row.priority or 0,
        zone=row.zone,
        is_active=bool(row.is_active),
    )


def _serialize_discount(row: Any) -> DiscountOut:
    return DiscountOut(
        id=row.id,
        discount_percentage=float(row.discount_percentage),
        is_active=bool(row.is_active),
        start_date=as_utc(row.start_date),
        end_date=as_utc(row.end_date),
    )
