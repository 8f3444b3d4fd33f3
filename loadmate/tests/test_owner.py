"""
Integration tests for the vehicle owner surface: registration, fleet
management, booking queues and delivery earnings.
"""

from loadmate.tests.helpers import auth, add_vehicle, create_booking


async def approve(client, token, booking_id):
    response = await client.put(f"/api/v1/bookings/{booking_id}/approve", headers=auth(token))
    assert response.status_code == 200


async def set_owner_status(client, token, booking_id, status, **extra):
    return await client.put(
        f"/api/v1/owner/bookings/{booking_id}/status",
        json={"status": status, **extra},
        headers=auth(token)
    )


class TestRegistration:

    async def test_customer_becomes_verified_owner(self, client, customer_token):
        response = await client.post(
            "/api/v1/owner/register",
            json={"business_name": "Asha Movers", "license_number": "LIC-42"},
            headers=auth(customer_token[0])
        )

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "owner"
        assert data["business_name"] == "Asha Movers"
        assert data["is_verified"] is True

    async def test_already_owner(self, client, owner_token):
        response = await client.post(
            "/api/v1/owner/register",
            json={"business_name": "Again", "license_number": "LIC-2"},
            headers=auth(owner_token[0])
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Already registered as vehicle owner"

    async def test_admin_cannot_register_as_owner(self, client, admin_token):
        response = await client.post(
            "/api/v1/owner/register",
            json={"business_name": "Admin Co", "license_number": "LIC-3"},
            headers=auth(admin_token[0])
        )
        assert response.status_code == 400

    async def test_customer_cannot_use_owner_endpoints(self, client, customer_token):
        response = await client.get("/api/v1/owner/vehicles", headers=auth(customer_token[0]))
        assert response.status_code == 403


class TestFleet:

    async def test_new_vehicle_is_approved_and_tracked(self, client, owner_token):
        token, owner_id = owner_token
        vehicle = await add_vehicle(client, token)

        assert vehicle["owner_id"] == owner_id
        assert vehicle["approval_status"] == "approved"
        assert vehicle["is_available"] is True
        assert vehicle["total_earnings"] == 0
        assert vehicle["completed_trips"] == 0

        listing = await client.get("/api/v1/owner/vehicles", headers=auth(token))
        assert [v["id"] for v in listing.json()["vehicles"]] == [vehicle["id"]]

    async def test_update_own_vehicle(self, client, owner_token, owner_vehicle):
        response = await client.put(
            f"/api/v1/owner/vehicles/{owner_vehicle['id']}",
            json={"base_fare_per_km": 15, "driver_name": "Suresh"},
            headers=auth(owner_token[0])
        )
        assert response.status_code == 200
        assert response.json()["base_fare_per_km"] == 15
        assert response.json()["driver_name"] == "Suresh"

    async def test_cannot_touch_other_owners_vehicle(self, client, owner2_token, owner_vehicle):
        url = f"/api/v1/owner/vehicles/{owner_vehicle['id']}"
        update = await client.put(url, json={"base_fare_per_km": 1}, headers=auth(owner2_token[0]))
        assert update.status_code == 401

        delete = await client.delete(url, headers=auth(owner2_token[0]))
        assert delete.status_code == 401

    async def test_delete_vehicle(self, client, owner_token, owner_vehicle):
        token, _ = owner_token
        response = await client.delete(f"/api/v1/owner/vehicles/{owner_vehicle['id']}", headers=auth(token))
        assert response.status_code == 200
        assert response.json()["message"] == "Vehicle deleted successfully"

        stats = await client.get("/api/v1/owner/stats", headers=auth(token))
        assert stats.json()["total_vehicles"] == 0

    async def test_admin_deletes_any_vehicle(self, client, admin_token, owner_vehicle):
        response = await client.delete(f"/api/v1/owner/vehicles/{owner_vehicle['id']}", headers=auth(admin_token[0]))
        assert response.status_code == 200

        assert (await client.get(f"/api/v1/vehicles/{owner_vehicle['id']}")).status_code == 404


class TestOwnerBookings:

    async def test_queues_only_show_own_vehicles(self, client, customer_token, owner_token, owner2_token, pending_booking):
        other_vehicle = await add_vehicle(client, owner2_token[0], registration_number="TS-07-XY-0007")
        await create_booking(client, customer_token[0], other_vehicle["id"])

        all_bookings = await client.get("/api/v1/owner/bookings", headers=auth(owner_token[0]))
        assert [b["id"] for b in all_bookings.json()["bookings"]] == [pending_booking["id"]]

        pending = await client.get("/api/v1/owner/bookings/pending", headers=auth(owner_token[0]))
        assert pending.json()["total"] == 1

        await approve(client, owner_token[0], pending_booking["id"])
        pending = await client.get("/api/v1/owner/bookings/pending", headers=auth(owner_token[0]))
        assert pending.json()["total"] == 0

    async def test_driver_assignment(self, client, owner_token, pending_booking):
        await approve(client, owner_token[0], pending_booking["id"])
        driver = {"name": "Ravi", "phone": "+91-9876500000", "vehicle_number": "TS-01-AB-1234"}

        response = await set_owner_status(client, owner_token[0], pending_booking["id"], "in-transit", driver_details=driver)

        assert response.status_code == 200
        assert response.json()["status"] == "in-transit"
        assert response.json()["driver_details"] == driver

    async def test_delivery_credits_vehicle_once(self, client, owner_token, owner_vehicle, pending_booking):
        token, _ = owner_token
        await approve(client, token, pending_booking["id"])
        assert (await set_owner_status(client, token, pending_booking["id"], "in-transit")).status_code == 200

        first = await set_owner_status(client, token, pending_booking["id"], "delivered")
        second = await set_owner_status(client, token, pending_booking["id"], "delivered")
        assert first.status_code == 200
        assert second.status_code == 200

        vehicle = (await client.get(f"/api/v1/vehicles/{owner_vehicle['id']}")).json()
        assert vehicle["completed_trips"] == 1
        assert vehicle["total_earnings"] == 800

        stats = (await client.get("/api/v1/owner/stats", headers=auth(token))).json()
        assert stats["total_earnings"] == 800
        assert stats["total_bookings"] == 1
        assert stats["active_bookings"] == 0

    async def test_generic_status_endpoint_also_credits_owner_delivery(self, client, owner_token, owner_vehicle, pending_booking):
        token, _ = owner_token
        url = f"/api/v1/bookings/{pending_booking['id']}/status"
        await approve(client, token, pending_booking["id"])

        for status in ("in-transit", "delivered", "delivered"):
            response = await client.put(url, json={"status": status}, headers=auth(token))
            assert response.status_code == 200

        vehicle = (await client.get(f"/api/v1/vehicles/{owner_vehicle['id']}")).json()
        assert vehicle["completed_trips"] == 1
        assert vehicle["total_earnings"] == 800

    async def test_reopened_delivery_is_not_credited_twice(self, client, owner_token, owner_vehicle, pending_booking):
        token, _ = owner_token
        await approve(client, token, pending_booking["id"])

        for status in ("delivered", "in-transit", "delivered"):
            response = await set_owner_status(client, token, pending_booking["id"], status)
            assert response.status_code == 200
            assert response.json()["status"] == status

        vehicle = (await client.get(f"/api/v1/vehicles/{owner_vehicle['id']}")).json()
        assert vehicle["completed_trips"] == 1
        assert vehicle["total_earnings"] == 800

    async def test_owner_can_cancel_delivered_booking(self, client, owner_token, pending_booking):
        token, _ = owner_token
        await approve(client, token, pending_booking["id"])
        await set_owner_status(client, token, pending_booking["id"], "delivered")

        response = await set_owner_status(client, token, pending_booking["id"], "cancelled")
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    async def test_other_owner_cannot_update_status(self, client, owner_token, owner2_token, pending_booking):
        await approve(client, owner_token[0], pending_booking["id"])

        response = await set_owner_status(client, owner2_token[0], pending_booking["id"], "in-transit")
        assert response.status_code == 401
