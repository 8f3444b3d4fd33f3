"""
Account and fleet enumerations.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.
    
    Roles:
        CUSTOMER: Books transport (default role)
        OWNER: Lists vehicles and decides on bookings for them
        ADMIN: Moderates users, vehicles and bookings
    """
    CUSTOMER = "customer"
    OWNER = "owner"
    ADMIN = "admin"


class AuthProvider(str, enum.Enum):
    """How the account signs in."""
    LOCAL = "local"
    GOOGLE = "google"


class VehicleType(str, enum.Enum):
    """Vehicle classes offered on the platform, smallest first."""
    TATA_ACE = "Tata Ace"
    PICKUP_TRUCK = "Pickup Truck"
    MINI_TRUCK = "Mini Truck"
    CONTAINER_TRUCK = "Container Truck"
    TRAILER = "Trailer"


class ApprovalStatus(str, enum.Enum):
    """
    Admin moderation state of a vehicle.
    
    Seeded/system vehicles may have no approval status at all; those rows
    are treated like APPROVED when deciding whether a vehicle is bookable.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
