# 聚合导入所有模型，供 Alembic 发现

from .fleet import VehicleType, Vehicle, Driver
from .pricing_rules import PricingRule, GlobalDiscountSetting, HotelZone
from .customer import Customer, CustomerActivityLog
from .partner import Partner, PartnerTransaction, PartnerPayout, PartnerDailyStats
from .booking import Booking, TripAssignment, TripLog, BookingCancellationRequest
from .billing import Invoice, PaymentTransaction, ReviewRequest
from .ops import AdminNotification, AutomationLog

__all__ = [
    # fleet
    "VehicleType", "Vehicle", "Driver",
    # pricing
    "PricingRule", "GlobalDiscountSetting", "HotelZone",
    # customers / partners
    "Customer", "CustomerActivityLog",
    "Partner", "PartnerTransaction", "PartnerPayout", "PartnerDailyStats",
    # bookings
    "Booking", "TripAssignment", "TripLog", "BookingCancellationRequest",
    # billing / ops
    "Invoice", "PaymentTransaction", "ReviewRequest", "AdminNotification", "AutomationLog",
]
