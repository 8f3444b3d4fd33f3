"""
Vehicle database model.

Vehicles are listed by owners (auto-approved) or created as system vehicles
by an admin or the seed script (no owner, no approval status).
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Enum, JSON, Text
from sqlalchemy.sql import func
from loadmate.app.db.session import Base
from loadmate.app.models.enums import VehicleType, ApprovalStatus


class Vehicle(Base):
    """
    Vehicle model.
    
    ``owner_id`` is a plain reference rather than a foreign key: deleting an
    owner leaves their vehicles in place with the old id.
    """
    __tablename__ = "vehicles"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # Ownership (None for system vehicles)
    owner_id = Column(Integer, nullable=True, index=True)
    
    # Identification
    registration_number = Column(String(50), unique=True, nullable=True, index=True)
    vehicle_type = Column(Enum(VehicleType), nullable=False, index=True)
    
    # Capacity (kg) and cargo bed dimensions (ft)
    capacity = Column(Float, nullable=False, index=True)
    length = Column(Float, nullable=False)
    width = Column(Float, nullable=False)
    height = Column(Float, nullable=False)
    
    # Rates
    base_fare_per_km = Column(Float, nullable=False)
    loading_charge = Column(Float, default=0, nullable=True)
    
    description = Column(Text, nullable=True)
    driver_name = Column(String(100), nullable=True)
    driver_phone = Column(String(30), nullable=True)
    
    # Images: primary URL (also the legacy single-image field) + gallery
    image = Column(String(500), nullable=True)
    image_public_id = Column(String(255), nullable=True)
    gallery = Column(JSON, default=list, nullable=False)
    
    # State
    is_available = Column(Boolean, default=True, nullable=False, index=True)
    approval_status = Column(Enum(ApprovalStatus), nullable=True, index=True)
    
    # Earnings tracking
    total_earnings = Column(Float, default=0, nullable=False)
    completed_trips = Column(Integer, default=0, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Vehicle(id={self.id}, type='{self.vehicle_type.value}', owner_id={self.owner_id})>"
