"""
报价计算（纯计算 + 只读查询，不写库）

单车型报价 calculate_quote：
    1) 起点：从地址里提取机场代码（PUJ/SDQ/LRM/POP），提不到就用原始地址
    2) 车型：按名称忽略大小写匹配启用中的车型，找不到 -> VehicleTypeNotFound(400)
    3) 规则：(origin, destination, vehicle_type_id) 精确匹配启用规则，找不到 -> PricingRuleNotFound(404)，不做兜底价
    4) 往返：round(base × 1.9)
    5) 折扣：规则未标记 no_discount_allowed 时，取当前时间窗口内最新的全局折扣，round(price × (1 - pct/100))
    6) 报价单号 QT-YYYYMMDD-XXXX + 24h 过期时间

多车型报价 calculate_vehicle_quotes：
    - 起终点先归到区域（机场关键字 -> hotel_zones -> 固定区域关键字）
    - 每个容量足够的车型挑一条最佳规则；没有规则时用车型最低价（默认 50），price_source=fallback
    - 往返/折扣顺序与单车型一致，结果按价格升序
"""

from __future__ import annotations
import logging
import random
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.model.fleet import VehicleType
from app.db.model.pricing_rules import HotelZone, PricingRule
from app.repository import pricing_repo
from app.services.errors import PricingRuleNotFound, ValidationFailed, VehicleTypeNotFound
from app.utils.clock import now_utc

logger = logging.getLogger(__name__)


ROUND_TRIP_ALIASES = {"round-trip", "round_trip", "roundtrip"}

# 按顺序匹配，先命中先返回
_AIRPORT_KEYWORDS = (
    ("PUJ", ("puj", "punta cana airport")),
    ("SDQ", ("sdq", "santo domingo airport", "las americas")),
    ("LRM", ("lrm", "la romana airport")),
    ("POP", ("pop", "puerto plata")),
)
_AREA_KEYWORDS = (
    ("Zone A", ("bavaro", "zone a")),
    ("Zone B", ("cap cana", "zone b")),
    ("Zone C", ("uvero alto", "zone c")),
    ("Zone D", ("bayahibe", "la romana", "zone d")),
    ("Zone E", ("santo domingo", "zone e")),
)


@dataclass(slots=True)
class QuoteRequest:
    from_address: str
    to_address: str
    vehicle_type: str
    pickup_datetime: Optional[str] = None
    trip_type: str = "one-way"
    passenger_count: Optional[int] = None
    luggage_count: Optional[int] = None


@dataclass(slots=True)
class VehicleQuoteRequest:
    origin: str
    destination: str
    passengers: Optional[int] = None
    luggage: Optional[int] = None
    trip_type: Optional[str] = None


# ---------- arithmetic ----------
def round_price(value: Decimal) -> int:
    """四舍五入到整数（0.5 进位），价格均为正数。"""
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_round_trip(trip_type: Optional[str]) -> bool:
    return (trip_type or "").strip().lower() in ROUND_TRIP_ALIASES


def apply_round_trip(base_price: Decimal, round_trip: bool) -> Decimal:
    if not round_trip:
        return Decimal(base_price)
    multiplier = Decimal(str(settings.ROUNDTRIP_MULTIPLIER))
    return Decimal(round_price(Decimal(base_price) * multiplier))


def apply_discount(price: Decimal, discount_percentage: Decimal) -> Decimal:
    pct = Decimal(discount_percentage or 0)
    if pct <= 0:
        return Decimal(price)
    return Decimal(round_price(Decimal(price) * (Decimal("1") - pct / Decimal("100"))))


def _as_number(value: Decimal) -> int | float:
    """JSON 输出：整数价格输出 int，否则 float。"""
    d = Decimal(value)
    return int(d) if d == d.to_integral_value() else float(d)


# ---------- normalisation ----------
def extract_airport_code(address: str) -> str:
    codes = "|".join(re.escape(c) for c in settings.AIRPORT_CODES)
    m = re.search(rf"\b({codes})\b", address, flags=re.IGNORECASE)
    return m.group(0).upper() if m else address


def find_zone(location: str, hotel_zones: Iterable[HotelZone]) -> Optional[str]:
    lower = location.lower()

    for code, keywords in _AIRPORT_KEYWORDS:
        if any(k in lower for k in keywords):
            return code

    for zone in hotel_zones:
        if zone.hotel_name and zone.hotel_name.lower() in lower:
            return zone.zone_code
        for term in zone.search_terms or []:
            if term and str(term).lower() in lower:
                return zone.zone_code

    for code, keywords in _AREA_KEYWORDS:
        if any(k in lower for k in keywords):
            return code
    return None


def generate_quote_number(now: Optional[datetime] = None) -> str:
    """QT-YYYYMMDD-XXXX，不做去重。"""
    ts = now or now_utc()
    return f"QT-{ts.strftime('%Y%m%d')}-{random.randint(0, 9999):04d}"


def _current_discount_pct(db: Session) -> Decimal:
    row = pricing_repo.get_active_discount(db)
    return Decimal(row.discount_percentage) if row and row.discount_percentage else Decimal("0")


# ---------- single vehicle ----------
def calculate_quote(db: Session, req: QuoteRequest) -> Dict[str, Any]:
    if not req.from_address or not req.to_address or not req.vehicle_type:
        raise ValidationFailed("Missing required fields: from_address, to_address, vehicle_type")

    trip_type = req.trip_type or "one-way"
    origin = extract_airport_code(req.from_address)
    destination = req.to_address

    vehicle_type = pricing_repo.get_active_vehicle_type_by_name(db, req.vehicle_type)
    if vehicle_type is None:
        raise VehicleTypeNotFound(f"Vehicle type '{req.vehicle_type}' not found")

    rule = pricing_repo.find_active_rule(db, origin, destination, vehicle_type.id)
    if rule is None:
        raise PricingRuleNotFound(
            f"No pricing rule found for route {origin} to {destination} with vehicle {vehicle_type.name}"
        )

    base_price = Decimal(rule.base_price)
    price = apply_round_trip(base_price, is_round_trip(trip_type))
    if not rule.no_discount_allowed:
        price = apply_discount(price, _current_discount_pct(db))

    now = now_utc()
    quote = {
        "quote_number": generate_quote_number(now),
        "from_address": req.from_address,
        "to_address": req.to_address,
        "origin": origin,
        "destination": destination,
        "vehicle_type": vehicle_type.name,
        "vehicle_type_id": vehicle_type.id,
        "pickup_datetime": req.pickup_datetime,
        "trip_type": trip_type,
        "base_price": _as_number(base_price),
        "total_price": _as_number(price),
        "passenger_count": req.passenger_count or 1,
        "pricing_rule_id": rule.id,
        "expires_at": (now + timedelta(hours=settings.QUOTE_TTL_HOURS)).isoformat(),
    }
    logger.info("quote %s %s -> %s (%s) total=%s", quote["quote_number"], origin, destination,
                vehicle_type.name, quote["total_price"])
    return quote


# ---------- multi vehicle ----------
def _match_rule(
    rules: List[PricingRule],
    vehicle_id: str,
    destination: str,
    origin_zone: Optional[str],
    destination_zone: Optional[str],
) -> Optional[PricingRule]:
    """rules 已按 priority 降序排列"""
    lower_dest = destination.lower()
    candidates = [r for r in rules if r.vehicle_type_id == vehicle_id]

    # 1) 同起点区域 + 目的地精确 / 子串（双向）/ 等于目的地区域
    for r in candidates:
        if r.origin != origin_zone:
            continue
        rule_dest = r.destination.lower()
        if (rule_dest == lower_dest or rule_dest in lower_dest or lower_dest in rule_dest
                or r.destination == destination_zone):
            return r

    # 2) 区域对精确匹配
    if origin_zone and destination_zone:
        for r in candidates:
            if r.origin == origin_zone and r.destination == destination_zone:
                return r

    # 3) 规则 zone 字段等于目的地区域
    if origin_zone:
        for r in candidates:
            if r.origin == origin_zone and r.zone == destination_zone:
                return r
    return None


def _fits(vehicle: VehicleType, passengers: Optional[int], luggage: Optional[int]) -> bool:
    if passengers and vehicle.passenger_capacity < passengers:
        return False
    if luggage and vehicle.luggage_capacity < luggage:
        return False
    return True


def calculate_vehicle_quotes(db: Session, req: VehicleQuoteRequest) -> Dict[str, Any]:
    if not req.origin or not req.destination:
        raise ValidationFailed("Origin/pickup_location and destination/dropoff_location are required")

    vehicles = pricing_repo.list_active_vehicle_types(db)
    rules = pricing_repo.list_active_rules(db)
    zones = pricing_repo.list_active_hotel_zones(db)
    discount_pct = _current_discount_pct(db)

    origin_zone = find_zone(req.origin, zones)
    destination_zone = find_zone(req.destination, zones)
    round_trip = is_round_trip(req.trip_type)
    logger.info("vehicle quotes zones origin=%s destination=%s discount=%s%%",
                origin_zone, destination_zone, discount_pct)

    quotes: List[Dict[str, Any]] = []
    for vehicle in vehicles:
        if not _fits(vehicle, req.passengers, req.luggage):
            continue

        rule = _match_rule(rules, vehicle.id, req.destination, origin_zone, destination_zone)
        if rule is not None:
            base_price = Decimal(rule.base_price)
        else:
            base_price = Decimal(vehicle.minimum_fare or 0) or Decimal(str(settings.FALLBACK_MINIMUM_FARE))

        original_price = apply_round_trip(base_price, round_trip)
        discount_allowed = not (rule is not None and rule.no_discount_allowed)
        price = apply_discount(original_price, discount_pct) if discount_allowed else original_price

        quotes.append({
            "vehicle_name": vehicle.name,
            "vehicle_id": vehicle.id,
            "capacity": vehicle.passenger_capacity,
            "luggage_capacity": vehicle.luggage_capacity,
            "base_price": _as_number(base_price),
            "original_price": _as_number(original_price),
            "price": _as_number(price),
            "currency": settings.QUOTE_CURRENCY,
            "trip_type": "round_trip" if round_trip else "one_way",
            "discount_percentage": _as_number(discount_pct),
            "discount_applied": discount_allowed and discount_pct > 0,
            "origin_zone": origin_zone,
            "destination_zone": destination_zone,
            "price_source": "pricing_rules" if rule is not None else "fallback",
        })

    quotes.sort(key=lambda q: q["price"])

    return {
        "origin": req.origin,
        "destination": req.destination,
        "passengers": req.passengers or 1,
        "luggage": req.luggage or 1,
        "trip_type": "round_trip" if round_trip else "one_way",
        "discount_percentage": _as_number(discount_pct),
        "quotes": quotes,
    }
