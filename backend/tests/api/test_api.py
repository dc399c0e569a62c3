from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from app.main import app


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": True}


def test_root(client):
    assert client.get("/").json()["ok"] is True


# ---------- quotes ----------
def test_calculate_quote_missing_fields(client):
    resp = client.post("/api/v1/calculate-quote", json={"from_address": "PUJ"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields: to_address, vehicle_type"}


def test_calculate_quote_ok(client, factory):
    sedan = factory.vehicle_type("Sedan")
    factory.rule(sedan, origin="PUJ", destination="Hard Rock Hotel", base_price="100")

    resp = client.post("/api/v1/calculate-quote", json={
        "from_address": "Punta Cana Airport (PUJ)",
        "to_address": "Hard Rock Hotel",
        "vehicle_type": "SEDAN",
        "trip_type": "round-trip",
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["quote"]["total_price"] == 190


def test_calculate_quote_error_shapes(client, factory):
    factory.vehicle_type("Sedan")

    resp = client.post("/api/v1/calculate-quote", json={
        "from_address": "PUJ", "to_address": "Hard Rock Hotel", "vehicle_type": "Bus",
    })
    assert resp.status_code == 400
    assert resp.json() == {"error": "Vehicle type 'Bus' not found"}

    resp = client.post("/api/v1/calculate-quote", json={
        "from_address": "PUJ", "to_address": "Nowhere", "vehicle_type": "Sedan",
    })
    assert resp.status_code == 404
    assert resp.json()["error"].startswith("No pricing rule found")


def test_vehicle_quotes_accepts_location_aliases(client, factory):
    factory.vehicle_type("Sedan", minimum_fare=40)

    resp = client.post("/api/v1/vehicle-quotes", json={
        "pickup_location": "PUJ airport", "dropoff_location": "Bavaro", "passengers": 2,
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["quotes"][0]["price"] == 40
    assert body["quotes"][0]["destination_zone"] == "Zone A"


def test_vehicle_quotes_requires_origin(client):
    resp = client.post("/api/v1/vehicle-quotes", json={"destination": "Bavaro"})
    assert resp.status_code == 400
    assert "required" in resp.json()["error"]


# ---------- bookings ----------
def test_booking_lifecycle_errors(client):
    resp = client.post("/api/v1/bookings/handle-new-booking", json={"booking_id": "missing"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Booking not found"}

    resp = client.post("/api/v1/bookings/request-cancellation", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing cancellation token"}

    resp = client.post("/api/v1/bookings/handle-payment-confirmation", json={"booking_id": "x"})
    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Missing required fields")


def test_payment_then_completion(client, factory):
    booking = factory.booking(pickup=datetime.now(timezone.utc) + timedelta(days=2))
    assignment = factory.assignment(booking, status="in_progress")

    resp = client.post("/api/v1/bookings/handle-payment-confirmation", json={
        "booking_id": booking.id, "payment_method": "card", "amount_paid": 200,
    })
    assert resp.status_code == 200
    assert resp.json()["auto_dispatch_triggered"] is False

    resp = client.post("/api/v1/bookings/handle-booking-completion", json={"assignment_id": assignment.id})
    assert resp.status_code == 200
    assert resp.json()["workflow_status"] == "completed"


# ---------- internal endpoints ----------
def test_internal_endpoints_need_service_key(client):
    assert client.get("/api/v1/pricing/rules").status_code == 401
    resp = client.post("/api/v1/automation/handle-no-shows", headers={"Authorization": "Bearer wrong"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid service key"}
    resp = client.post("/api/v1/dispatch/auto-dispatch", json={"booking_id": "x"})
    assert resp.json() == {"error": "Missing bearer token"}


def test_pricing_admin_flow(client, factory, auth_headers):
    sedan = factory.vehicle_type("Sedan")

    resp = client.post("/api/v1/pricing/rules", headers=auth_headers, json={
        "origin": "PUJ", "destination": "Zone A", "vehicle_type_id": sedan.id, "base_price": 35,
    })
    assert resp.status_code == 201
    rule = resp.json()
    assert rule["base_price"] == 35.0
    assert rule["no_discount_allowed"] is False

    resp = client.patch(f"/api/v1/pricing/rules/{rule['id']}", headers=auth_headers,
                        json={"is_active": False})
    assert resp.json()["is_active"] is False

    assert client.get("/api/v1/pricing/rules", headers=auth_headers).json() == []
    listed = client.get("/api/v1/pricing/rules?include_inactive=true", headers=auth_headers).json()
    assert [r["id"] for r in listed] == [rule["id"]]

    resp = client.patch("/api/v1/pricing/rules/missing", headers=auth_headers, json={"priority": 3})
    assert resp.status_code == 404

    resp = client.post("/api/v1/pricing/rules", headers=auth_headers, json={
        "origin": "PUJ", "destination": "Zone A", "vehicle_type_id": "nope", "base_price": 35,
    })
    assert resp.status_code == 400


def test_discount_replace(client, auth_headers):
    assert client.get("/api/v1/pricing/discount", headers=auth_headers).json()["is_active"] is False

    client.put("/api/v1/pricing/discount", headers=auth_headers, json={"discount_percentage": 10})
    resp = client.put("/api/v1/pricing/discount", headers=auth_headers, json={"discount_percentage": 15})
    assert resp.status_code == 200

    current = client.get("/api/v1/pricing/discount", headers=auth_headers).json()
    assert current["discount_percentage"] == 15.0
    assert current["is_active"] is True

    resp = client.put("/api/v1/pricing/discount", headers=auth_headers, json={"discount_percentage": 120})
    assert resp.status_code == 400


def test_manual_automation_runs(client, auth_headers):
    resp = client.post("/api/v1/automation/handle-no-shows", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["no_shows_detected"] == 0

    resp = client.post("/api/v1/automation/calculate-partner-commissions", headers=auth_headers,
                       json={"run_date": "2026-01-15"})
    assert resp.status_code == 200
    assert resp.json()["date"] == "2026-01-15"
    assert resp.json()["trips_processed"] == 0


def test_auto_dispatch_conflict(client, factory, auth_headers):
    booking = factory.booking()

    resp = client.post("/api/v1/dispatch/auto-dispatch", headers=auth_headers, json={"booking_id": booking.id})

    assert resp.status_code == 409
    assert resp.json()["error"].startswith("No available vehicles")


def test_unhandled_errors_are_wrapped(monkeypatch, auth_headers):
    from app.api.v1 import dispatch

    def boom(*args, **kwargs):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(dispatch, "auto_dispatch", boom)
    client = TestClient(app, raise_server_exceptions=False)

    resp = client.post("/api/v1/dispatch/auto-dispatch", headers=auth_headers, json={"booking_id": "x"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "kaboom"}
