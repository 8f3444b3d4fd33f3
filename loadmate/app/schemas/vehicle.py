"""
Vehicle Pydantic schemas.

Defines request and response models for the fleet registry and for load-based
vehicle suggestions.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from loadmate.app.models.enums import VehicleType, ApprovalStatus


class VehicleCreate(BaseModel):
    """Schema for listing a new vehicle."""
    vehicle_type: VehicleType = Field(..., description="Vehicle class")
    registration_number: Optional[str] = Field(None, min_length=1, max_length=50, description="Unique registration number")
    
    # Capacity (kg) and cargo bed dimensions (ft)
    capacity: float = Field(..., gt=0, description="Maximum load in kg")
    length: float = Field(..., gt=0, description="Cargo bed length in ft")
    width: float = Field(..., gt=0, description="Cargo bed width in ft")
    height: float = Field(..., gt=0, description="Cargo bed height in ft")
    
    # Rates
    base_fare_per_km: float = Field(..., ge=0, description="Fare per km")
    loading_charge: float = Field(default=0, ge=0, description="Flat loading charge")
    
    description: Optional[str] = Field(None, max_length=2000)
    driver_name: Optional[str] = Field(None, max_length=100)
    driver_phone: Optional[str] = Field(None, max_length=30)
    image: Optional[str] = Field(None, max_length=500, description="Image URL")
    is_available: bool = True


class VehicleUpdate(BaseModel):
    """Schema for updating the specification or availability of a vehicle."""
    vehicle_type: Optional[VehicleType] = None
    capacity: Optional[float] = Field(None, gt=0)
    length: Optional[float] = Field(None, gt=0)
    width: Optional[float] = Field(None, gt=0)
    height: Optional[float] = Field(None, gt=0)
    base_fare_per_km: Optional[float] = Field(None, ge=0)
    loading_charge: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=2000)
    driver_name: Optional[str] = Field(None, max_length=100)
    driver_phone: Optional[str] = Field(None, max_length=30)
    is_available: Optional[bool] = None


class GalleryImage(BaseModel):
    id: str
    url: str
    public_id: Optional[str] = None


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    owner_id: Optional[int]
    registration_number: Optional[str]
    vehicle_type: VehicleType
    capacity: float
    length: float
    width: float
    height: float
    base_fare_per_km: float
    loading_charge: Optional[float]
    description: Optional[str]
    driver_name: Optional[str]
    driver_phone: Optional[str]
    image: Optional[str]
    gallery: List[GalleryImage] = []
    is_available: bool
    approval_status: Optional[ApprovalStatus]
    total_earnings: float
    completed_trips: int
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    """Schema for paginated vehicle list."""
    vehicles: List[VehicleResponse]
    total: int
    page: int
    page_size: int


class SuggestionRequest(BaseModel):
    """Load requirements for vehicle suggestions. Dimensions count only when all three are given."""
    weight: float = Field(..., gt=0, description="Load weight in kg")
    length: Optional[float] = Field(None, gt=0)
    width: Optional[float] = Field(None, gt=0)
    height: Optional[float] = Field(None, gt=0)
    distance: Optional[float] = Field(None, gt=0, description="Trip distance in km (defaults to 50)")


class OwnerSummary(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    business_name: Optional[str] = None
    phone: Optional[str] = None
    
    class Config:
        from_attributes = True


class FareQuoteResponse(BaseModel):
    """Priced offer for one vehicle."""
    distance: float
    base_fare: float
    loading_charges: float
    total_fare: float


class VehicleWithOwner(VehicleResponse):
    owner: Optional[OwnerSummary] = None


class VehicleWithOwnerList(BaseModel):
    vehicles: List[VehicleWithOwner]
    total: int


class VehicleSuggestion(VehicleWithOwner):
    """A candidate vehicle with its owner and a signed fare quote."""
    quote: FareQuoteResponse
    quote_token: str


class SuggestionResponse(BaseModel):
    suggestions: List[VehicleSuggestion]
    total: int
