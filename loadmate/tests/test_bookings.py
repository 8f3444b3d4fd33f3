"""
Integration tests for the booking ledger.

Creation and fare fixing, visibility, cancellation, and the owner's
approve/reject decision with its one-shot rule.
"""

import pytest
from sqlalchemy import select

from loadmate.app.core.exceptions import StateConflictError
from loadmate.app.domain.booking import lifecycle
from loadmate.app.domain.booking.lifecycle import BookingState
from loadmate.app.models.audit_log import AuditLog
from loadmate.app.models.booking_enums import BookingStatus, OwnerApprovalStatus
from loadmate.app.services.booking_service import get_booking_or_404, record_decision
from loadmate.tests.helpers import auth, add_vehicle, booking_payload, create_booking


class TestCreateBooking:

    async def test_fare_defaults_to_fifty_km(self, client, customer_token, owner_vehicle):
        booking = await create_booking(client, customer_token[0], owner_vehicle["id"])

        assert booking["distance"] == 50
        assert booking["fare"] == {"base_fare": 600, "loading_charges": 200, "total_fare": 800}
        assert booking["status"] == "pending"
        assert booking["owner_approval"]["status"] == "pending"
        assert booking["vehicle"]["owner_id"] == owner_vehicle["owner_id"]
        assert booking["customer"]["email"] == "customer@test.com"

    async def test_fare_uses_given_distance(self, client, customer_token, owner_vehicle):
        booking = await create_booking(client, customer_token[0], owner_vehicle["id"], distance=120)
        assert booking["fare"]["total_fare"] == 12 * 120 + 200

    async def test_quote_token_fixes_fare(self, client, customer_token, owner_vehicle):
        suggest = await client.post("/api/v1/vehicles/suggest", json={"weight": 500, "distance": 80})
        suggestion = suggest.json()["suggestions"][0]

        # The quoted distance wins over any distance sent with the booking
        booking = await create_booking(
            client, customer_token[0], owner_vehicle["id"],
            quote_token=suggestion["quote_token"], distance=5
        )

        assert booking["distance"] == 80
        assert booking["fare"]["total_fare"] == suggestion["quote"]["total_fare"]

    async def test_quote_for_another_vehicle_rejected(self, client, customer_token, owner_token, owner_vehicle):
        other = await add_vehicle(client, owner_token[0], registration_number="TS-09-ZZ-0001")
        suggest = await client.post("/api/v1/vehicles/suggest", json={"weight": 500})
        token_for_first = next(s["quote_token"] for s in suggest.json()["suggestions"] if s["id"] == owner_vehicle["id"])

        response = await client.post(
            "/api/v1/bookings",
            json=booking_payload(other["id"], quote_token=token_for_first),
            headers=auth(customer_token[0])
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Fare quote was issued for a different vehicle"

    async def test_invalid_quote_rejected(self, client, customer_token, owner_vehicle):
        response = await client.post(
            "/api/v1/bookings",
            json=booking_payload(owner_vehicle["id"], quote_token="garbage"),
            headers=auth(customer_token[0])
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Fare quote is invalid or has expired"

    async def test_unavailable_vehicle_rejected(self, client, customer_token, owner_token, owner_vehicle):
        await client.put(
            f"/api/v1/owner/vehicles/{owner_vehicle['id']}",
            json={"is_available": False},
            headers=auth(owner_token[0])
        )

        response = await client.post(
            "/api/v1/bookings", json=booking_payload(owner_vehicle["id"]), headers=auth(customer_token[0])
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Vehicle is not available for booking"

    async def test_overweight_load_rejected(self, client, customer_token, owner_vehicle):
        payload = booking_payload(owner_vehicle["id"])
        payload["load_details"]["weight"] = 900

        response = await client.post("/api/v1/bookings", json=payload, headers=auth(customer_token[0]))

        assert response.status_code == 400
        assert response.json()["message"] == "Load exceeds vehicle capacity"

    async def test_missing_vehicle_is_404(self, client, customer_token):
        response = await client.post(
            "/api/v1/bookings", json=booking_payload(9999), headers=auth(customer_token[0])
        )
        assert response.status_code == 404

    async def test_only_customers_book(self, client, owner_token, owner_vehicle):
        response = await client.post(
            "/api/v1/bookings", json=booking_payload(owner_vehicle["id"]), headers=auth(owner_token[0])
        )
        assert response.status_code == 403

    async def test_missing_required_field_is_validation_error(self, client, customer_token, owner_vehicle):
        payload = booking_payload(owner_vehicle["id"])
        del payload["scheduled_date"]

        response = await client.post("/api/v1/bookings", json=payload, headers=auth(customer_token[0]))

        assert response.status_code == 400
        assert response.json()["error_code"] == "ERR_VALIDATION"


class TestVisibility:

    async def test_my_bookings(self, client, customer_token, customer2_token, owner_vehicle, pending_booking):
        mine = await client.get("/api/v1/bookings/my-bookings", headers=auth(customer_token[0]))
        assert [b["id"] for b in mine.json()["bookings"]] == [pending_booking["id"]]

        theirs = await client.get("/api/v1/bookings/my-bookings", headers=auth(customer2_token[0]))
        assert theirs.json()["total"] == 0

    async def test_requester_owner_and_admin_can_view(self, client, customer_token, owner_token, admin_token, pending_booking):
        for token in (customer_token[0], owner_token[0], admin_token[0]):
            response = await client.get(f"/api/v1/bookings/{pending_booking['id']}", headers=auth(token))
            assert response.status_code == 200

    async def test_stranger_cannot_view(self, client, customer2_token, owner2_token, pending_booking):
        for token in (customer2_token[0], owner2_token[0]):
            response = await client.get(f"/api/v1/bookings/{pending_booking['id']}", headers=auth(token))
            assert response.status_code == 401


class TestCancel:

    async def test_requester_cancels(self, client, customer_token, pending_booking):
        response = await client.delete(f"/api/v1/bookings/{pending_booking['id']}", headers=auth(customer_token[0]))
        assert response.status_code == 200
        assert response.json()["message"] == "Booking cancelled successfully"

        booking = await client.get(f"/api/v1/bookings/{pending_booking['id']}", headers=auth(customer_token[0]))
        assert booking.json()["status"] == "cancelled"

    async def test_only_requester_cancels(self, client, owner_token, admin_token, pending_booking):
        for token in (owner_token[0], admin_token[0]):
            response = await client.delete(f"/api/v1/bookings/{pending_booking['id']}", headers=auth(token))
            assert response.status_code == 401

    async def test_owner_can_still_approve_cancelled_booking(self, client, customer_token, owner_token, pending_booking):
        await client.delete(f"/api/v1/bookings/{pending_booking['id']}", headers=auth(customer_token[0]))

        response = await client.put(f"/api/v1/bookings/{pending_booking['id']}/approve", headers=auth(owner_token[0]))

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert response.json()["owner_approval"]["status"] == "approved"


class TestOwnerDecision:

    async def test_approve_confirms(self, client, owner_token, pending_booking, db_session):
        response = await client.put(f"/api/v1/bookings/{pending_booking['id']}/approve", headers=auth(owner_token[0]))

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["owner_approval"]["status"] == "approved"
        assert data["owner_approval"]["approved_at"] is not None

        logs = await db_session.execute(select(AuditLog).where(AuditLog.action == "BOOKING_APPROVED"))
        assert logs.scalar_one().resource_id == pending_booking["id"]

    async def test_reject_cancels_with_reason(self, client, owner_token, pending_booking):
        response = await client.put(
            f"/api/v1/bookings/{pending_booking['id']}/reject",
            json={"rejection_reason": "Truck under repair"},
            headers=auth(owner_token[0])
        )

        data = response.json()
        assert data["status"] == "cancelled"
        assert data["owner_approval"]["status"] == "rejected"
        assert data["owner_approval"]["rejection_reason"] == "Truck under repair"

    async def test_reject_without_body_uses_default_reason(self, client, owner_token, pending_booking):
        response = await client.put(f"/api/v1/bookings/{pending_booking['id']}/reject", headers=auth(owner_token[0]))
        assert response.json()["owner_approval"]["rejection_reason"] == "No reason provided"

    @pytest.mark.parametrize("first,second", [
        ("approve", "approve"), ("approve", "reject"), ("reject", "approve"), ("reject", "reject"),
    ])
    async def test_decision_is_one_shot(self, client, owner_token, pending_booking, first, second):
        url = f"/api/v1/bookings/{pending_booking['id']}"
        assert (await client.put(f"{url}/{first}", headers=auth(owner_token[0]))).status_code == 200

        response = await client.put(f"{url}/{second}", headers=auth(owner_token[0]))

        assert response.status_code == 400
        assert response.json()["message"] == "Booking has already been processed"

    async def test_other_owner_cannot_decide(self, client, customer_token, owner2_token, pending_booking):
        response = await client.put(f"/api/v1/bookings/{pending_booking['id']}/approve", headers=auth(owner2_token[0]))
        assert response.status_code == 401

        # Booking unchanged
        booking = await client.get(f"/api/v1/bookings/{pending_booking['id']}", headers=auth(customer_token[0]))
        assert booking.json()["status"] == "pending"
        assert booking.json()["owner_approval"]["status"] == "pending"

    async def test_requester_and_admin_cannot_decide(self, client, customer_token, admin_token, pending_booking):
        for token in (customer_token[0], admin_token[0]):
            response = await client.put(f"/api/v1/bookings/{pending_booking['id']}/approve", headers=auth(token))
            assert response.status_code == 401

    async def test_losing_a_decision_race_changes_nothing(self, client, owner_token, pending_booking, db_session):
        booking = await get_booking_or_404(db_session, pending_booking["id"])
        before = BookingState.of(booking)
        await db_session.commit()

        # A competing rejection lands after this approval read the booking
        rejected = await client.put(f"/api/v1/bookings/{pending_booking['id']}/reject", headers=auth(owner_token[0]))
        assert rejected.status_code == 200

        with pytest.raises(StateConflictError, match="already been processed"):
            await record_decision(db_session, booking, before, lifecycle.approve(before))

        stored = await get_booking_or_404(db_session, pending_booking["id"])
        await db_session.refresh(stored)
        assert stored.approval_status == OwnerApprovalStatus.REJECTED
        assert stored.status == BookingStatus.CANCELLED


class TestStatusUpdate:

    async def test_requester_sets_supplied_status_without_credit(self, client, customer_token, owner_token, owner_vehicle, pending_booking):
        url = f"/api/v1/bookings/{pending_booking['id']}"
        await client.put(f"{url}/approve", headers=auth(owner_token[0]))

        for status in ("in-transit", "delivered", "cancelled"):
            response = await client.put(f"{url}/status", json={"status": status}, headers=auth(customer_token[0]))
            assert response.status_code == 200
            assert response.json()["status"] == status

        vehicle = (await client.get(f"/api/v1/vehicles/{owner_vehicle['id']}")).json()
        assert vehicle["completed_trips"] == 0

    async def test_rejected_booking_cannot_be_reopened(self, client, customer_token, owner_token, pending_booking):
        url = f"/api/v1/bookings/{pending_booking['id']}"
        await client.put(f"{url}/reject", headers=auth(owner_token[0]))

        response = await client.put(f"{url}/status", json={"status": "pending"}, headers=auth(customer_token[0]))

        assert response.status_code == 400
        assert response.json()["message"] == "A rejected booking cannot be reopened"

    async def test_unknown_status_is_validation_error(self, client, customer_token, pending_booking):
        response = await client.put(
            f"/api/v1/bookings/{pending_booking['id']}/status",
            json={"status": "teleported"},
            headers=auth(customer_token[0])
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "ERR_VALIDATION"

    async def test_owner_cannot_skip_approval(self, client, owner_token, pending_booking):
        response = await client.put(
            f"/api/v1/bookings/{pending_booking['id']}/status",
            json={"status": "in-transit"},
            headers=auth(owner_token[0])
        )
        assert response.status_code == 400
