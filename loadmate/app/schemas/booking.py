"""
Booking Pydantic schemas.

Defines request and response models for the booking ledger. Responses nest
the fare and the owner's decision the way clients display them.
"""

from pydantic import BaseModel, Field
from datetime import datetime, date
from typing import Optional, List
from loadmate.app.models.booking_enums import BookingStatus, OwnerApprovalStatus
from loadmate.app.models.enums import VehicleType


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Location(BaseModel):
    """Pickup or drop address."""
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    pincode: Optional[str] = Field(None, max_length=20)
    coordinates: Optional[Coordinates] = None


class LoadDetails(BaseModel):
    """Cargo to be moved: weight in kg, dimensions in ft."""
    weight: float = Field(..., gt=0)
    length: float = Field(..., gt=0)
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    material_type: Optional[str] = Field(None, max_length=100)


class DriverDetails(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    vehicle_number: Optional[str] = Field(None, max_length=50)


class BookingCreate(BaseModel):
    """
    Schema for creating a booking.
    
    ``quote_token`` is the token returned with a vehicle suggestion. When it is
    supplied the quoted distance and fare are charged as-is; otherwise the fare
    is computed from ``distance`` (default 50 km).
    """
    vehicle_id: int = Field(..., description="Vehicle to book")
    pickup_location: Location
    drop_location: Location
    load_details: LoadDetails
    distance: Optional[float] = Field(None, gt=0, description="Trip distance in km")
    quote_token: Optional[str] = Field(None, description="Signed fare quote from /vehicles/suggest")
    scheduled_date: date
    scheduled_time: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = Field(None, max_length=2000)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingReject(BaseModel):
    rejection_reason: Optional[str] = Field(None, max_length=500)


class Fare(BaseModel):
    base_fare: float
    loading_charges: float
    total_fare: float


class OwnerApproval(BaseModel):
    status: OwnerApprovalStatus
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


class BookingVehicleSummary(BaseModel):
    id: int
    vehicle_type: VehicleType
    registration_number: Optional[str] = None
    owner_id: Optional[int] = None
    image: Optional[str] = None


class BookingCustomerSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None


class BookingResponse(BaseModel):
    """Schema for booking response."""
    id: int
    user_id: int
    vehicle_id: int
    pickup_location: Location
    drop_location: Location
    load_details: LoadDetails
    distance: float
    fare: Fare
    scheduled_date: date
    scheduled_time: Optional[str] = None
    status: BookingStatus
    owner_approval: OwnerApproval
    driver_details: Optional[DriverDetails] = None
    notes: Optional[str] = None
    vehicle: Optional[BookingVehicleSummary] = None
    customer: Optional[BookingCustomerSummary] = None
    created_at: datetime
    updated_at: datetime


class BookingListResponse(BaseModel):
    """Schema for paginated booking list."""
    bookings: List[BookingResponse]
    total: int
    page: int
    page_size: int


class MessageResponse(BaseModel):
    message: str
