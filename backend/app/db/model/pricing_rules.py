from __future__ import annotations
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String, func, text
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, JSONType, new_id


'''
路线定价规则表：
    - origin: 机场代码（PUJ/SDQ/LRM/POP）或区域代码（Zone A..E）
    - destination: 酒店/区域名称，报价时精确或子串匹配
    - no_discount_allowed: 该路线不参与全局折扣
    - priority: 多车型报价时同一车型多条命中按优先级取
'''
class PricingRule(Base):

    __tablename__ = "pricing_rules"

    id:              Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    origin:          Mapped[str] = mapped_column(String(128), nullable=False)
    destination:     Mapped[str] = mapped_column(String(255), nullable=False)
    zone:            Mapped[Optional[str]] = mapped_column(String(32))
    vehicle_type_id: Mapped[str] = mapped_column(String(36), ForeignKey("vehicle_types.id"), nullable=False)

    base_price:          Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    no_discount_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"), default=False)
    priority:            Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active:           Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"), default=True)

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_pricing_rules_route", "origin", "destination", "vehicle_type_id"),
    )


"""
  全局折扣：按 is_active + 时间窗口筛选，created_at 最新的一条生效
"""
class GlobalDiscountSetting(Base):

    __tablename__ = "global_discount_settings"

    id:                  Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    discount_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    is_active:           Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_date:          Mapped[object] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date:            Mapped[Optional[object]] = mapped_column(DateTime(timezone=True), nullable=True)   # NULL = open-ended

    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class HotelZone(Base):

    __tablename__ = "hotel_zones"

    id:           Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    hotel_name:   Mapped[str] = mapped_column(String(255), nullable=False)
    zone_code:    Mapped[str] = mapped_column(String(32), nullable=False)
    search_terms: Mapped[List[Any]] = mapped_column(JSONType, nullable=False, default=list)
    is_active:    Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
