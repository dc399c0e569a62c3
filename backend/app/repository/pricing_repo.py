# pricing reference data repository: vehicle types / pricing rules / discounts / hotel zones

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from app.db.model.fleet import VehicleType
from app.db.model.pricing_rules import GlobalDiscountSetting, HotelZone, PricingRule
from app.utils.clock import now_utc


@dataclass(slots=True)
class PricingRuleDTO:
    origin: str
    destination: str
    vehicle_type_id: str
    base_price: Decimal
    no_discount_allowed: bool = False
    priority: int = 0
    zone: Optional[str] = None
    is_active: bool = True


# ---------- vehicle types ----------
def get_active_vehicle_type_by_name(db: Session, name: str) -> Optional[VehicleType]:
    """忽略大小写的名称匹配（ilike 无通配符）。"""
    stmt = (
        select(VehicleType)
        .where(func.lower(VehicleType.name) == name.strip().lower())
        .where(VehicleType.is_active.is_(True))
    )
    return db.scalars(stmt).first()


def list_active_vehicle_types(db: Session) -> list[VehicleType]:
    stmt = (
        select(VehicleType)
        .where(VehicleType.is_active.is_(True))
        .order_by(VehicleType.display_order.asc(), VehicleType.name.asc())
    )
    return list(db.scalars(stmt))


# ---------- pricing rules ----------
def find_active_rule(db: Session, origin: str, destination: str, vehicle_type_id: str) -> Optional[PricingRule]:
    """精确匹配 (origin, destination, vehicle_type_id)；多条命中时取 priority 最高的一条。"""
    stmt = (
        select(PricingRule)
        .where(PricingRule.origin == origin)
        .where(PricingRule.destination == destination)
        .where(PricingRule.vehicle_type_id == vehicle_type_id)
        .where(PricingRule.is_active.is_(True))
        .order_by(PricingRule.priority.desc())
    )
    return db.scalars(stmt).first()


def list_active_rules(db: Session) -> list[PricingRule]:
    stmt = (
        select(PricingRule)
        .where(PricingRule.is_active.is_(True))
        .order_by(PricingRule.priority.desc(), PricingRule.created_at.asc())
    )
    return list(db.scalars(stmt))


def list_rules(db: Session, *, include_inactive: bool = False) -> list[PricingRule]:
    stmt = select(PricingRule).order_by(PricingRule.origin.asc(), PricingRule.destination.asc())
    if not include_inactive:
        stmt = stmt.where(PricingRule.is_active.is_(True))
    return list(db.scalars(stmt))


def get_rule(db: Session, rule_id: str) -> Optional[PricingRule]:
    return db.get(PricingRule, rule_id)


def create_rule(db: Session, dto: PricingRuleDTO) -> PricingRule:
    row = PricingRule(
        origin=dto.origin,
        destination=dto.destination,
        vehicle_type_id=dto.vehicle_type_id,
        base_price=dto.base_price,
        no_discount_allowed=dto.no_discount_allowed,
        priority=dto.priority,
        zone=dto.zone,
        is_active=dto.is_active,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


_RULE_FIELDS = {"origin", "destination", "vehicle_type_id", "base_price",
                "no_discount_allowed", "priority", "zone", "is_active"}


def update_rule(db: Session, rule: PricingRule, patch: Dict[str, Any]) -> PricingRule:
    """只更新白名单字段，其它 key 忽略。"""
    for k, v in patch.items():
        if k in _RULE_FIELDS:
            setattr(rule, k, v)
    db.commit()
    db.refresh(rule)
    return rule


# ---------- global discount ----------
def get_active_discount(db: Session, at: Optional[datetime] = None) -> Optional[GlobalDiscountSetting]:
    """
    当前生效的全局折扣：
        is_active = true AND start_date <= now AND (end_date IS NULL OR end_date > now)
        多条同时满足时取 created_at 最新的一条
    """
    now = at or now_utc()
    stmt = (
        select(GlobalDiscountSetting)
        .where(GlobalDiscountSetting.is_active.is_(True))
        .where(GlobalDiscountSetting.start_date <= now)
        .where(or_(GlobalDiscountSetting.end_date.is_(None), GlobalDiscountSetting.end_date > now))
        .order_by(GlobalDiscountSetting.created_at.desc())
        .limit(1)
    )
    return db.scalars(stmt).first()


def replace_active_discount(
    db: Session,
    discount_percentage: Decimal,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> GlobalDiscountSetting:
    """关闭所有已启用的折扣，再插入一条新的启用记录（单事务）。"""
    now = now_utc()
    db.execute(
        update(GlobalDiscountSetting)
        .where(GlobalDiscountSetting.is_active.is_(True))
        .values(is_active=False)
    )
    row = GlobalDiscountSetting(
        discount_percentage=discount_percentage,
        is_active=True,
        start_date=start_date or now,
        end_date=end_date,
        created_at=now,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


# ---------- hotel zones ----------
def list_active_hotel_zones(db: Session) -> list[HotelZone]:
    stmt = select(HotelZone).where(HotelZone.is_active.is_(True))
    return list(db.scalars(stmt))
