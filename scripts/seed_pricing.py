from decimal import Decimal

from sqlalchemy import select

from app.db.session import session_scope
from app.db.model.fleet import VehicleType
from app.db.model.pricing_rules import HotelZone, PricingRule
from app.repository import pricing_repo


# 在容器里运行一次：python -m scripts.seed_pricing
# （PYTHONPATH 指向 backend/）。已存在的车型/规则/酒店不会重复插入。

VEHICLE_TYPES = [
    # name, passengers, luggage, minimum fare, display order
    ("Sedan", 3, 3, Decimal("35"), 1),
    ("Minivan", 6, 6, Decimal("55"), 2),
    ("Suburban", 6, 5, Decimal("95"), 3),
    ("Sprinter", 12, 12, Decimal("120"), 4),
]

# origin, destination, vehicle, base price, no discount
PRICING_RULES = [
    ("PUJ", "Zone A", "Sedan", Decimal("35"), False),
    ("PUJ", "Zone A", "Minivan", Decimal("55"), False),
    ("PUJ", "Zone B", "Sedan", Decimal("40"), False),
    ("PUJ", "Zone C", "Sedan", Decimal("60"), False),
    ("PUJ", "Zone D", "Minivan", Decimal("110"), False),
    ("PUJ", "Zone E", "Suburban", Decimal("220"), True),
    ("SDQ", "Zone E", "Sedan", Decimal("45"), False),
]

HOTEL_ZONES = [
    ("Hard Rock Hotel Punta Cana", "Zone C", ["hard rock", "macao"]),
    ("Paradisus Palma Real", "Zone A", ["palma real"]),
    ("Sanctuary Cap Cana", "Zone B", ["sanctuary"]),
    ("Dreams Dominicus La Romana", "Zone D", ["dominicus"]),
]


def main():
    with session_scope() as db:
        types = {}
        for name, pax, bags, minimum, order in VEHICLE_TYPES:
            row = pricing_repo.get_active_vehicle_type_by_name(db, name)
            if row is None:
                row = VehicleType(name=name, passenger_capacity=pax, luggage_capacity=bags,
                                  minimum_fare=minimum, display_order=order)
                db.add(row)
                db.flush()
            types[name] = row

        created = 0
        for origin, destination, vehicle, price, no_discount in PRICING_RULES:
            vt = types[vehicle]
            if pricing_repo.find_active_rule(db, origin, destination, vt.id) is not None:
                continue
            db.add(PricingRule(origin=origin, destination=destination, zone=destination,
                               vehicle_type_id=vt.id, base_price=price, no_discount_allowed=no_discount))
            created += 1

        for hotel, zone, terms in HOTEL_ZONES:
            exists = db.scalar(select(HotelZone.id).where(HotelZone.hotel_name == hotel))
            if exists is None:
                db.add(HotelZone(hotel_name=hotel, zone_code=zone, search_terms=terms))

        db.commit()
        print(f"Seeded {len(types)} vehicle types, {created} new pricing rules")


if __name__ == "__main__":
    main()
