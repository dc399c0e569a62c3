from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict

from app.core.config import settings


CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class CommissionBreakdown:
    gross: Decimal          # booking price
    commission: Decimal     # gross × rate%
    platform_fee: Decimal   # gross × 3%
    net: Decimal            # commission - platform_fee


def compute_commission(gross_amount: Decimal, commission_rate: Decimal) -> CommissionBreakdown:
    """
    price=200, rate=20 -> commission 40.00, fee 6.00, net 34.00
    rate 为百分比
    """
    gross = Decimal(gross_amount or 0)
    commission = _money(gross * Decimal(commission_rate or 0) / Decimal("100"))
    fee = _money(gross * Decimal(str(settings.PLATFORM_FEE_RATE)))
    return CommissionBreakdown(gross=_money(gross), commission=commission, platform_fee=fee, net=commission - fee)


@dataclass(slots=True)
class PartnerDayTotals:
    """单个合作方一次结算里的累计值，写入 partner_daily_stats"""
    bookings_count: int = 0
    total_revenue: Decimal = field(default_factory=lambda: Decimal("0"))
    commission_earned: Decimal = field(default_factory=lambda: Decimal("0"))
    platform_fees: Decimal = field(default_factory=lambda: Decimal("0"))

    def add(self, b: CommissionBreakdown) -> None:
        self.bookings_count += 1
        self.total_revenue += b.gross
        self.commission_earned += b.commission
        self.platform_fees += b.platform_fee

    def as_dict(self) -> Dict[str, Any]:
        return {
            "bookings_count": self.bookings_count,
            "total_revenue": float(self.total_revenue),
            "commission_earned": float(self.commission_earned),
            "platform_fees": float(self.platform_fees),
        }
