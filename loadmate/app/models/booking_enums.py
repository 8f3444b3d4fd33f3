"""
Booking-related enumerations.
"""

import enum


class BookingStatus(str, enum.Enum):
    """
    Overall (customer-facing) booking status.
    
    PENDING -> CONFIRMED -> IN_TRANSIT -> DELIVERED, with CANCELLED
    reachable from any non-terminal status.
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OwnerApprovalStatus(str, enum.Enum):
    """
    Vehicle owner's decision on a booking.
    
    PENDING: Waiting for the owner
    APPROVED: Owner accepted (booking becomes CONFIRMED)
    REJECTED: Owner declined (booking becomes CANCELLED)
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
