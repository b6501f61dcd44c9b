"""
Tests del adaptador HTTP: códigos de estado, camelCase y mapeo de errores
"""
from datetime import date, timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from main import create_app


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


@pytest.fixture
def payload(inventory):
    return {
        "guestId": inventory.guest_id,
        "propertyId": inventory.property_id,
        "roomId": inventory.room_id,
        "checkIn": "2025-03-10",
        "checkOut": "2025-03-12",
        "adults": 2,
        "pricePerNight": "100.00",
        "totalAmount": "200.00",
    }


class TestCreateBookingEndpoint:

    def test_created(self, client, payload):
        response = client.post("/bookings", json=payload)

        assert response.status_code == 201
        body = response.json()
        booking = body["booking"]
        assert booking["status"] == "WAITING_PAYMENT"
        assert booking["paymentMethod"] == "MANUAL_TRANSFER"
        assert booking["nights"] == 2
        assert booking["checkIn"] == "2025-03-10"
        assert booking["orderCode"].startswith("ORD-")
        assert body["paymentToken"] is None
        assert body["warning"] is None

    def test_gateway_token(self, client, payload):
        payload["paymentMethod"] = "PAYMENT_GATEWAY"

        body = client.post("/bookings", json=payload).json()

        assert body["paymentToken"] == f"tok_{body['booking']['orderCode']}"

    def test_gateway_failure_returns_warning(self, client, gateway, payload):
        gateway.fail = True
        payload["paymentMethod"] = "PAYMENT_GATEWAY"

        response = client.post("/bookings", json=payload)

        assert response.status_code == 201
        body = response.json()
        assert body["booking"]["paymentMethod"] == "MANUAL_TRANSFER"
        assert body["warning"]["code"] == "payment_gateway_unavailable"

    def test_conflict(self, client, payload):
        first = client.post("/bookings", json=payload).json()
        payload["checkIn"] = "2025-03-11"
        payload["checkOut"] = "2025-03-13"

        response = client.post("/bookings", json=payload)

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "room_unavailable"
        assert detail["conflicting_dates"][0]["order_code"] == first["booking"]["orderCode"]

    def test_validation_error(self, client, payload):
        payload["adults"] = 3

        response = client.post("/bookings", json=payload)

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "validation_failed"
        assert "guests" in detail["field_errors"]

    def test_price_mismatch(self, client, payload):
        payload["totalAmount"] = "199.50"

        response = client.post("/bookings", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "price_mismatch"

    def test_unknown_guest(self, client, payload):
        payload["guestId"] = "missing-guest"

        response = client.post("/bookings", json=payload)

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "user_not_found"

    def test_malformed_body(self, client, payload):
        del payload["checkOut"]
        assert client.post("/bookings", json=payload).status_code == 422


class TestAvailabilityEndpoint:

    def test_available(self, client, inventory):
        response = client.get(
            f"/bookings/availability/{inventory.property_id}/{inventory.room_id}",
            params={"checkIn": "2025-03-10", "checkOut": "2025-03-12"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["available"] is True
        assert body["pricing"]["hasAdjustments"] is False
        assert body["pricing"]["basePrice"] == "100.00"
        assert body["unavailableDates"] == []

    def test_conflicting_dates(self, client, inventory, seed_booking):
        seed_booking(date(2025, 3, 10), date(2025, 3, 12), order_code="ORD-A")

        body = client.get(
            f"/bookings/availability/{inventory.property_id}/{inventory.room_id}",
            params={"checkIn": "2025-03-11", "checkOut": "2025-03-13"},
        ).json()

        assert body["available"] is False
        assert body["conflictingDates"] == [
            {"checkIn": "2025-03-10", "checkOut": "2025-03-12", "orderCode": "ORD-A"}
        ]

    def test_invalid_range(self, client, inventory):
        response = client.get(
            f"/bookings/availability/{inventory.property_id}/{inventory.room_id}",
            params={"checkIn": "2025-03-12", "checkOut": "2025-03-10"},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "invalid_date_range"

    def test_unknown_room(self, client, inventory):
        response = client.get(
            f"/bookings/availability/{inventory.property_id}/missing-room",
            params={"checkIn": "2025-03-10", "checkOut": "2025-03-12"},
        )
        assert response.status_code == 404

    def test_with_guests(self, client, inventory):
        body = client.get(
            f"/bookings/availability/{inventory.property_id}/{inventory.room_id}/guests",
            params={"checkIn": "2025-03-10", "checkOut": "2025-03-13", "adults": 2},
        ).json()

        assert body["validationPassed"] is True
        assert body["nights"] == 3
        assert body["totalPrice"] == "300.00"

    def test_with_too_many_guests(self, client, inventory):
        body = client.get(
            f"/bookings/availability/{inventory.property_id}/{inventory.room_id}/guests",
            params={"checkIn": "2025-03-10", "checkOut": "2025-03-12", "adults": 3},
        ).json()

        assert body["validationPassed"] is False
        assert "guests" in body["validationErrors"]


class TestTransitionEndpoints:

    def test_cancel(self, client, payload):
        booking_id = client.post("/bookings", json=payload).json()["booking"]["id"]

        response = client.post(f"/bookings/{booking_id}/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELED"

        again = client.post(f"/bookings/{booking_id}/cancel")
        assert again.status_code == 409
        assert again.json()["detail"]["code"] == "invalid_state"

    def test_cancel_unknown(self, client):
        response = client.post("/bookings/missing-booking/cancel")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "booking_not_found"

    def test_proof_confirm_complete(self, client, clock, inventory, payload):
        booking_id = client.post("/bookings", json=payload).json()["booking"]["id"]

        clock.advance(timedelta(minutes=5))
        proof = client.post(f"/bookings/{booking_id}/payment-proof").json()
        assert proof["status"] == "WAITING_CONFIRMATION"
        assert proof["paymentProofSubmittedAt"] is not None

        confirmed = client.post(f"/bookings/{booking_id}/confirm", params={"tenantId": inventory.tenant_id})
        assert confirmed.json()["status"] == "PROCESSING"
        assert client.post(f"/bookings/{booking_id}/complete").json()["status"] == "COMPLETED"

    def test_reject_proof(self, client, inventory, payload):
        booking_id = client.post("/bookings", json=payload).json()["booking"]["id"]
        client.post(f"/bookings/{booking_id}/payment-proof")

        body = client.post(
            f"/bookings/{booking_id}/payment-proof/reject", params={"tenantId": inventory.tenant_id}
        ).json()

        assert body["status"] == "WAITING_PAYMENT"
        assert body["paymentProofSubmittedAt"] is None

    def test_get_booking(self, client, payload):
        created = client.post("/bookings", json=payload).json()["booking"]

        response = client.get(f"/bookings/{created['id']}")

        assert response.status_code == 200
        assert response.json()["orderCode"] == created["orderCode"]
        assert client.get("/bookings/missing-booking").status_code == 404

    def test_confirm_by_other_tenant(self, client, payload):
        booking_id = client.post("/bookings", json=payload).json()["booking"]["id"]
        client.post(f"/bookings/{booking_id}/payment-proof")

        response = client.post(f"/bookings/{booking_id}/confirm", params={"tenantId": "another-tenant"})

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "booking_access_denied"
        assert client.get(f"/bookings/{booking_id}").json()["status"] == "WAITING_CONFIRMATION"

    def test_confirm_requires_tenant(self, client, payload):
        booking_id = client.post("/bookings", json=payload).json()["booking"]["id"]
        assert client.post(f"/bookings/{booking_id}/confirm").status_code == 422

    def test_get_booking_database_error(self, client, service):
        failure = OperationalError("SELECT 1", {}, Exception("database is locked"))

        with patch.object(service, "get_booking", side_effect=failure):
            response = client.get("/bookings/some-booking")

        assert response.status_code == 500
        assert response.json()["detail"]["code"] == "internal_error"
