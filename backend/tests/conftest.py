"""
测试公共夹具
    - 进程内 sqlite 内存库（StaticPool 单连接），每个测试前建表、结束后删表
    - TASKS_INLINE=true：fire-and-forget 任务在当前进程同步执行
    - Factory：按需造车型 / 规则 / 合作方 / 订单 / 派车记录
"""

import os

# 必须在导入 app.* 之前设置，Settings 在导入时读取环境变量
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["TASKS_INLINE"] = "true"
os.environ["SERVICE_ROLE_KEY"] = "test-key"
os.environ.pop("RESEND_API_KEY", None)

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from app.db.model.booking import Booking, BookingCancellationRequest, TripAssignment
from app.db.model.customer import Customer
from app.db.model.fleet import Driver, Vehicle, VehicleType
from app.db.model.partner import Partner
from app.db.model.pricing_rules import GlobalDiscountSetting, HotelZone, PricingRule
from app.db import SessionLocal, create_all, drop_all
from app.main import app


@pytest.fixture(autouse=True)
def _schema():
    create_all()
    yield
    drop_all()


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client():
    # 不用 with：lifespan 退出时会 dispose engine，内存库随之消失
    return TestClient(app)


@pytest.fixture()
def auth_headers():
    return {"Authorization": "Bearer test-key"}


class Factory:
    """每个方法写一行并 commit，返回 ORM 对象"""

    def __init__(self, db):
        self.db = db

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        return row

    # ---------- pricing ----------
    def vehicle_type(self, name="Sedan", passengers=3, luggage=3, minimum_fare=None, order=0, active=True):
        return self._save(VehicleType(
            name=name,
            passenger_capacity=passengers,
            luggage_capacity=luggage,
            minimum_fare=minimum_fare,
            display_order=order,
            is_active=active,
        ))

    def rule(self, vehicle_type, origin="PUJ", destination="Hard Rock Hotel", base_price="100",
             no_discount=False, priority=0, zone=None, active=True):
        return self._save(PricingRule(
            origin=origin,
            destination=destination,
            vehicle_type_id=vehicle_type.id,
            base_price=Decimal(base_price),
            no_discount_allowed=no_discount,
            priority=priority,
            zone=zone,
            is_active=active,
        ))

    def discount(self, pct="10", start=None, end=None, active=True, created_at=None):
        now = datetime.now(timezone.utc)
        return self._save(GlobalDiscountSetting(
            discount_percentage=Decimal(pct),
            is_active=active,
            start_date=start or now - timedelta(days=1),
            end_date=end,
            created_at=created_at or now,
        ))

    def hotel_zone(self, hotel_name, zone_code, terms=()):
        return self._save(HotelZone(hotel_name=hotel_name, zone_code=zone_code, search_terms=list(terms)))

    # ---------- fleet ----------
    def vehicle(self, vehicle_type="sedan", status="available", plate=None):
        return self._save(Vehicle(vehicle_type=vehicle_type, status=status, plate_number=plate))

    def driver(self, first_name="Luis", rating="4.50", status="active", vehicle_id=None):
        return self._save(Driver(first_name=first_name, last_name="Test", status=status,
                                 rating=Decimal(rating), vehicle_id=vehicle_id))

    # ---------- people ----------
    def customer(self, email="ana@example.com", total_bookings=1):
        return self._save(Customer(email=email, first_name="Ana", last_name="Perez",
                                   phone="", total_bookings=total_bookings))

    def partner(self, rate="20", email="hotel@example.com"):
        return self._save(Partner(business_name="Beach Hotel", email=email, commission_rate=Decimal(rate)))

    # ---------- bookings ----------
    def booking(self, price="200", pickup: Optional[datetime] = None, partner=None, customer=None,
                workflow_status="pending", payment_status="unpaid", status="pending",
                email="ana@example.com", vehicle_type="sedan"):
        return self._save(Booking(
            reference="TS-0001",
            customer_name="Ana Maria Perez",
            customer_email=email,
            customer_phone="+1 809 555 0101",
            customer_id=customer.id if customer else None,
            partner_id=partner.id if partner else None,
            service_type="Airport Transfer",
            vehicle_type=vehicle_type,
            pickup_location="Punta Cana Airport (PUJ)",
            dropoff_location="Hard Rock Hotel",
            pickup_datetime=pickup or datetime.now(timezone.utc) + timedelta(days=3),
            price=Decimal(price),
            status=status,
            payment_status=payment_status,
            workflow_status=workflow_status,
        ))

    def assignment(self, booking, driver=None, vehicle=None, status="assigned", dropoff_at=None,
                   created_at=None):
        row = TripAssignment(
            booking_id=booking.id,
            driver_id=driver.id if driver else None,
            vehicle_id=vehicle.id if vehicle else None,
            status=status,
            assignment_method="manual",
            dropoff_completed_at=dropoff_at,
        )
        if created_at is not None:
            row.created_at = created_at
        return self._save(row)

    def cancellation(self, booking, token="tok-123", status="pending"):
        return self._save(BookingCancellationRequest(
            booking_id=booking.id,
            cancellation_token=token,
            status=status,
            meta={"source": "email_link"},
        ))


@pytest.fixture()
def factory(db):
    return Factory(db)
