"""
Vehicle Owner Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from loadmate.app.schemas.booking import DriverDetails
from loadmate.app.models.booking_enums import BookingStatus


class OwnerRegister(BaseModel):
    """Schema for upgrading the current account to a vehicle owner."""
    business_name: str = Field(..., min_length=1, max_length=200)
    license_number: str = Field(..., min_length=1, max_length=100)


class OwnerStatsResponse(BaseModel):
    """Dashboard numbers for one owner."""
    total_vehicles: int
    active_vehicles: int
    approved_vehicles: int
    pending_vehicles: int
    total_bookings: int
    active_bookings: int
    total_earnings: float


class OwnerBookingStatusUpdate(BaseModel):
    """Status change by the owner of the booked vehicle, optionally assigning a driver."""
    status: BookingStatus
    driver_details: Optional[DriverDetails] = None
