import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.services.errors import PricingRuleNotFound, ValidationFailed, VehicleTypeNotFound
from app.services.pricing.quote_calculator import (
    QuoteRequest,
    VehicleQuoteRequest,
    apply_discount,
    apply_round_trip,
    calculate_quote,
    calculate_vehicle_quotes,
    extract_airport_code,
    find_zone,
    generate_quote_number,
    is_round_trip,
    round_price,
)


# ---------- 纯函数 ----------
def test_round_price_rounds_half_up():
    assert round_price(Decimal("170.5")) == 171
    assert round_price(Decimal("170.49")) == 170
    assert round_price(Decimal("104.5")) == 105


def test_round_trip_aliases():
    assert is_round_trip("round-trip")
    assert is_round_trip("Round_Trip")
    assert is_round_trip("roundtrip")
    assert not is_round_trip("one-way")
    assert not is_round_trip(None)


def test_round_trip_then_discount():
    # 100 往返 -> 190，再打 9 折 -> 171
    price = apply_round_trip(Decimal("100"), True)
    assert price == Decimal("190")
    assert apply_discount(price, Decimal("10")) == Decimal("171")


def test_zero_discount_keeps_price():
    assert apply_discount(Decimal("85"), Decimal("0")) == Decimal("85")


def test_extract_airport_code():
    assert extract_airport_code("Punta Cana International Airport (PUJ)") == "PUJ"
    assert extract_airport_code("sdq terminal 1") == "SDQ"
    # 没有机场代码时原样返回
    assert extract_airport_code("Hotel Riu Palace") == "Hotel Riu Palace"
    # 只匹配整词
    assert extract_airport_code("PUJOLS street") == "PUJOLS street"


def test_quote_number_format():
    number = generate_quote_number(datetime(2026, 3, 5, tzinfo=timezone.utc))
    assert re.fullmatch(r"QT-20260305-\d{4}", number)


def test_find_zone_order(factory):
    hard_rock = factory.hotel_zone("Hard Rock Hotel", "Zone C", terms=["macao"])
    zones = [hard_rock]

    assert find_zone("Punta Cana Airport", zones) == "PUJ"
    assert find_zone("Hard Rock Hotel & Casino", zones) == "Zone C"
    assert find_zone("Villa in Macao beach", zones) == "Zone C"
    assert find_zone("Condo in Bavaro", zones) == "Zone A"
    assert find_zone("somewhere else", zones) is None


# ---------- 单车型报价 ----------
def test_calculate_quote_round_trip_with_discount(db, factory):
    sedan = factory.vehicle_type("Sedan")
    factory.rule(sedan, origin="PUJ", destination="Hard Rock Hotel", base_price="100")
    factory.discount("10")

    quote = calculate_quote(db, QuoteRequest(
        from_address="Punta Cana Airport (PUJ)",
        to_address="Hard Rock Hotel",
        vehicle_type="sedan",
        trip_type="round-trip",
    ))

    assert quote["origin"] == "PUJ"
    assert quote["vehicle_type"] == "Sedan"
    assert quote["base_price"] == 100
    assert quote["total_price"] == 171
    assert quote["passenger_count"] == 1
    assert re.fullmatch(r"QT-\d{8}-\d{4}", quote["quote_number"])

    expires = datetime.fromisoformat(quote["expires_at"])
    assert timedelta(hours=23) < expires - datetime.now(timezone.utc) <= timedelta(hours=24)


def test_calculate_quote_no_discount_rule(db, factory):
    sedan = factory.vehicle_type("Sedan")
    factory.rule(sedan, base_price="100", no_discount=True)
    factory.discount("10")

    quote = calculate_quote(db, QuoteRequest("PUJ", "Hard Rock Hotel", "Sedan", trip_type="round_trip"))
    assert quote["total_price"] == 190


def test_calculate_quote_ignores_expired_discount(db, factory):
    sedan = factory.vehicle_type("Sedan")
    factory.rule(sedan, base_price="100")
    now = datetime.now(timezone.utc)
    factory.discount("25", start=now - timedelta(days=10), end=now - timedelta(days=1))

    quote = calculate_quote(db, QuoteRequest("PUJ", "Hard Rock Hotel", "Sedan"))
    assert quote["total_price"] == 100


def test_calculate_quote_prefers_highest_priority_rule(db, factory):
    sedan = factory.vehicle_type("Sedan")
    factory.rule(sedan, base_price="80", priority=0)
    factory.rule(sedan, base_price="95", priority=5)

    quote = calculate_quote(db, QuoteRequest("PUJ", "Hard Rock Hotel", "Sedan"))
    assert quote["total_price"] == 95


def test_calculate_quote_unknown_vehicle(db, factory):
    factory.vehicle_type("Sedan")
    with pytest.raises(VehicleTypeNotFound) as exc:
        calculate_quote(db, QuoteRequest("PUJ", "Hard Rock Hotel", "Limousine"))
    assert exc.value.status_code == 400


def test_calculate_quote_inactive_vehicle_is_unknown(db, factory):
    factory.vehicle_type("Sedan", active=False)
    with pytest.raises(VehicleTypeNotFound):
        calculate_quote(db, QuoteRequest("PUJ", "Hard Rock Hotel", "Sedan"))


def test_calculate_quote_without_rule(db, factory):
    factory.vehicle_type("Sedan")
    with pytest.raises(PricingRuleNotFound) as exc:
        calculate_quote(db, QuoteRequest("PUJ", "Unknown Villa", "Sedan"))
    assert exc.value.status_code == 404
    assert "PUJ to Unknown Villa" in exc.value.message


def test_calculate_quote_missing_fields(db):
    with pytest.raises(ValidationFailed):
        calculate_quote(db, QuoteRequest("", "Hard Rock Hotel", "Sedan"))


# ---------- 多车型报价 ----------
def _fleet(factory):
    sedan = factory.vehicle_type("Sedan", passengers=3, luggage=3, order=1)
    factory.vehicle_type("Minivan", passengers=6, luggage=6, minimum_fare=Decimal("55"), order=2)
    factory.vehicle_type("Sprinter", passengers=12, luggage=12, order=3)
    factory.hotel_zone("Hard Rock Hotel", "Zone C")
    return sedan


def test_vehicle_quotes_rules_and_fallback_sorted(db, factory):
    sedan = _fleet(factory)
    factory.rule(sedan, origin="PUJ", destination="Zone C", base_price="60")

    result = calculate_vehicle_quotes(db, VehicleQuoteRequest(
        origin="Punta Cana Airport", destination="Hard Rock Hotel", passengers=2,
    ))

    assert [q["vehicle_name"] for q in result["quotes"]] == ["Sprinter", "Minivan", "Sedan"]
    by_name = {q["vehicle_name"]: q for q in result["quotes"]}
    assert by_name["Sedan"]["price"] == 60
    assert by_name["Sedan"]["price_source"] == "pricing_rules"
    assert by_name["Minivan"]["price"] == 55
    assert by_name["Minivan"]["price_source"] == "fallback"
    assert by_name["Sprinter"]["price"] == 50
    assert by_name["Sedan"]["origin_zone"] == "PUJ"
    assert by_name["Sedan"]["destination_zone"] == "Zone C"
    assert result["trip_type"] == "one_way"


def test_vehicle_quotes_capacity_filter(db, factory):
    _fleet(factory)
    result = calculate_vehicle_quotes(db, VehicleQuoteRequest(
        origin="PUJ", destination="Hard Rock Hotel", passengers=5, luggage=4,
    ))
    assert {q["vehicle_name"] for q in result["quotes"]} == {"Minivan", "Sprinter"}


def test_vehicle_quotes_round_trip_discount_and_exclusion(db, factory):
    sedan = _fleet(factory)
    factory.rule(sedan, origin="PUJ", destination="Zone C", base_price="60", no_discount=True)
    factory.discount("10")

    result = calculate_vehicle_quotes(db, VehicleQuoteRequest(
        origin="PUJ airport", destination="Hard Rock Hotel", trip_type="round-trip",
    ))
    by_name = {q["vehicle_name"]: q for q in result["quotes"]}

    # sedan: 60 × 1.9 = 114，规则禁止折扣
    assert by_name["Sedan"]["price"] == 114
    assert by_name["Sedan"]["discount_applied"] is False
    # minivan: 55 × 1.9 = 104.5 -> 105，9 折 94.5 -> 95
    assert by_name["Minivan"]["original_price"] == 105
    assert by_name["Minivan"]["price"] == 95
    # sprinter: 50 × 1.9 = 95，9 折 85.5 -> 86
    assert by_name["Sprinter"]["price"] == 86
    assert [q["price"] for q in result["quotes"]] == [86, 95, 114]
    assert result["discount_percentage"] == 10


def test_vehicle_quotes_require_both_ends(db):
    with pytest.raises(ValidationFailed):
        calculate_vehicle_quotes(db, VehicleQuoteRequest(origin="PUJ", destination=""))
