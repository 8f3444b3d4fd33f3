"""
Database seeding script for development data.

Creates an admin, a test customer, five vehicle owners and six vehicles
spread across the owners. Run with ``python -m loadmate.seed_fleet``;
pass ``--destroy`` to remove the seeded vehicles, owners and customers.
"""

import asyncio
import argparse
from sqlalchemy import select, delete

from loadmate.app.db.session import AsyncSessionLocal, engine, Base
from loadmate.app.models.user import User
from loadmate.app.models.vehicle import Vehicle
# Registered with Base so create_all builds every table
from loadmate.app.models.booking import Booking
from loadmate.app.models.audit_log import AuditLog
from loadmate.app.models.enums import UserRole, VehicleType, ApprovalStatus
from loadmate.app.core.security import get_password_hash

ADMIN = {
    "name": "Platform Admin",
    "email": "admin@loadmate.com",
    "password": "admin123",
    "phone": "+91-9876543001",
}

CUSTOMERS = [
    {
        "name": "Test Customer",
        "email": "customer@test.com",
        "password": "password123",
        "phone": "+91-9876543000",
    },
]

OWNERS = [
    ("Rajesh Kumar", "rajesh@loadmate.com", "+91-9876543210", "Rajesh Transport Services", "TS-2023-001"),
    ("Priya Sharma", "priya@loadmate.com", "+91-9876543211", "Priya Logistics", "TS-2023-002"),
    ("Amit Singh", "amit@loadmate.com", "+91-9876543212", "Amit Cargo Services", "TS-2023-003"),
    ("Sunita Patel", "sunita@loadmate.com", "+91-9876543213", "Sunita Transport Co.", "TS-2023-004"),
    ("Vikram Reddy", "vikram@loadmate.com", "+91-9876543214", "Vikram Heavy Transport", "TS-2023-005"),
]

VEHICLES = [
    {
        "vehicle_type": VehicleType.TATA_ACE,
        "capacity": 750, "length": 7, "width": 4.5, "height": 5,
        "base_fare_per_km": 12, "loading_charge": 200,
        "description": "Perfect for small loads and city deliveries.",
        "registration_number": "TS-01-AB-1234",
        "driver_name": "Ravi Kumar", "driver_phone": "+91-9876543215",
    },
    {
        "vehicle_type": VehicleType.TATA_ACE,
        "capacity": 750, "length": 7, "width": 4.5, "height": 5,
        "base_fare_per_km": 13, "loading_charge": 250,
        "description": "Perfect for small loads and city deliveries.",
        "registration_number": "TS-01-CD-5678",
        "driver_name": "Suresh Yadav", "driver_phone": "+91-9876543216",
    },
    {
        "vehicle_type": VehicleType.PICKUP_TRUCK,
        "capacity": 1500, "length": 9, "width": 5.5, "height": 6,
        "base_fare_per_km": 18, "loading_charge": 300,
        "description": "Ideal for medium-sized goods and household shifting.",
        "registration_number": "TS-02-EF-9012",
        "driver_name": "Manoj Singh", "driver_phone": "+91-9876543217",
    },
    {
        "vehicle_type": VehicleType.MINI_TRUCK,
        "capacity": 2500, "length": 12, "width": 6, "height": 7,
        "base_fare_per_km": 22, "loading_charge": 400,
        "description": "Larger loads and inter-city transport, furniture and appliances.",
        "registration_number": "TS-03-GH-3456",
        "driver_name": "Deepak Kumar", "driver_phone": "+91-9876543218",
    },
    {
        "vehicle_type": VehicleType.CONTAINER_TRUCK,
        "capacity": 8000, "length": 20, "width": 8, "height": 8.5,
        "base_fare_per_km": 35, "loading_charge": 800,
        "description": "Heavy-duty transport for large commercial shipments.",
        "registration_number": "TS-04-IJ-7890",
        "driver_name": "Ramesh Patel", "driver_phone": "+91-9876543219",
    },
    {
        "vehicle_type": VehicleType.TRAILER,
        "capacity": 15000, "length": 32, "width": 8, "height": 9,
        "base_fare_per_km": 45, "loading_charge": 1200,
        "description": "Maximum capacity for industrial and wholesale bulk transport.",
        "registration_number": "TS-05-KL-2468",
        "driver_name": "Kiran Reddy", "driver_phone": "+91-9876543220",
    },
]


async def clear_seeded_data(db) -> None:
    """Remove all vehicles, owners and customers. Admins are kept."""
    await db.execute(delete(Vehicle))
    await db.execute(delete(User).where(User.role.in_([UserRole.OWNER, UserRole.CUSTOMER])))
    await db.commit()


async def seed_fleet():
    """
    Seed development data.

    Creates:
    - 1 ADMIN user (only if none exists)
    - 1 CUSTOMER user
    - 5 OWNER users, verified
    - 6 vehicles, assigned to owners round-robin
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Starting fleet seeding...")

        await clear_seeded_data(db)
        print("Cleared existing vehicles, owners and customers")

        result = await db.execute(select(User).where(User.email == ADMIN["email"]))
        if result.scalar_one_or_none() is None:
            db.add(User(
                name=ADMIN["name"],
                email=ADMIN["email"],
                hashed_password=get_password_hash(ADMIN["password"]),
                phone=ADMIN["phone"],
                role=UserRole.ADMIN,
                vehicles_owned=[]
            ))
            print(f"Created ADMIN user ({ADMIN['email']} / {ADMIN['password']})")

        for customer in CUSTOMERS:
            db.add(User(
                name=customer["name"],
                email=customer["email"],
                hashed_password=get_password_hash(customer["password"]),
                phone=customer["phone"],
                role=UserRole.CUSTOMER,
                vehicles_owned=[]
            ))
        print(f"Created {len(CUSTOMERS)} customer(s)")

        owners = []
        for name, email, phone, business_name, license_number in OWNERS:
            owner = User(
                name=name,
                email=email,
                hashed_password=get_password_hash("password123"),
                phone=phone,
                role=UserRole.OWNER,
                business_name=business_name,
                license_number=license_number,
                is_verified=True,
                vehicles_owned=[]
            )
            db.add(owner)
            owners.append(owner)
        await db.flush()
        print(f"Created {len(owners)} vehicle owners")

        owned = {owner.id: [] for owner in owners}
        for index, details in enumerate(VEHICLES):
            owner = owners[index % len(owners)]
            vehicle = Vehicle(
                **details,
                owner_id=owner.id,
                approval_status=ApprovalStatus.APPROVED,
                is_available=True,
                gallery=[]
            )
            db.add(vehicle)
            await db.flush()
            owned[owner.id].append(vehicle.id)

        for owner in owners:
            owner.vehicles_owned = owned[owner.id]

        await db.commit()
        print(f"Created {len(VEHICLES)} vehicles and linked them to their owners")
        print("\nFleet seeding completed successfully!")
        print("Owner and customer passwords: password123")


async def destroy_fleet():
    async with AsyncSessionLocal() as db:
        await clear_seeded_data(db)
        print("All vehicles, owners and customers deleted")


def main():
    parser = argparse.ArgumentParser(description="Seed LoadMate development data")
    parser.add_argument("--destroy", "-d", action="store_true", help="Delete seeded data instead")
    args = parser.parse_args()

    asyncio.run(destroy_fleet() if args.destroy else seed_fleet())


if __name__ == "__main__":
    main()
