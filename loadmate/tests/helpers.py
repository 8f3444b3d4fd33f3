"""
Request helpers shared by the API tests.
"""


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register_customer(client, email: str, name: str = "Test Customer"):
    response = await client.post("/api/v1/auth/register", json={
        "name": name,
        "email": email,
        "password": "password123",
        "phone": "+91-9000000000"
    })
    assert response.status_code == 201
    data = response.json()
    return data["access_token"], data["id"]


async def register_owner(client, email: str, business_name: str = "Test Transport"):
    token, user_id = await register_customer(client, email, name="Test Owner")
    response = await client.post(
        "/api/v1/owner/register",
        json={"business_name": business_name, "license_number": "LIC-001"},
        headers=auth(token)
    )
    assert response.status_code == 200
    return token, user_id


VEHICLE_PAYLOAD = {
    "vehicle_type": "Tata Ace",
    "registration_number": "TS-01-AB-1234",
    "capacity": 750,
    "length": 7,
    "width": 4.5,
    "height": 5,
    "base_fare_per_km": 12,
    "loading_charge": 200,
    "description": "Small loads and city deliveries",
    "driver_name": "Ravi Kumar",
    "driver_phone": "+91-9876543215"
}


async def add_vehicle(client, token: str, **overrides) -> dict:
    response = await client.post(
        "/api/v1/owner/vehicles",
        json={**VEHICLE_PAYLOAD, **overrides},
        headers=auth(token)
    )
    assert response.status_code == 201
    return response.json()


def booking_payload(vehicle_id: int, **overrides) -> dict:
    payload = {
        "vehicle_id": vehicle_id,
        "pickup_location": {"address": "12 MG Road", "city": "Hyderabad", "pincode": "500001"},
        "drop_location": {"address": "4 Tank Bund", "city": "Hyderabad"},
        "load_details": {"weight": 500, "length": 5, "width": 4, "height": 3, "material_type": "Furniture"},
        "scheduled_date": "2030-01-15",
        "scheduled_time": "10:00"
    }
    payload.update(overrides)
    return payload


async def create_booking(client, token: str, vehicle_id: int, **overrides) -> dict:
    response = await client.post(
        "/api/v1/bookings",
        json=booking_payload(vehicle_id, **overrides),
        headers=auth(token)
    )
    assert response.status_code == 201, response.text
    return response.json()

