"""
Booking database model.

A booking links one requesting user to one vehicle. Overall status and the
owner's approval decision are stored side by side, but they only ever change
together through ``loadmate.app.domain.booking.lifecycle``.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Date, Enum, JSON, Text
from sqlalchemy.sql import func
from loadmate.app.db.session import Base
from loadmate.app.models.booking_enums import BookingStatus, OwnerApprovalStatus


class Booking(Base):
    """
    Booking model.
    
    Locations are stored as JSON documents:
        {"address": str, "city": str, "pincode": str | None,
         "coordinates": {"latitude": float, "longitude": float} | None}
    """
    __tablename__ = "bookings"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # Plain references (see Vehicle.owner_id)
    user_id = Column(Integer, nullable=False, index=True)
    vehicle_id = Column(Integer, nullable=False, index=True)
    
    # Route
    pickup_location = Column(JSON, nullable=False)
    drop_location = Column(JSON, nullable=False)
    distance = Column(Float, nullable=False)
    
    # Load
    load_weight = Column(Float, nullable=False)
    load_length = Column(Float, nullable=False)
    load_width = Column(Float, nullable=False)
    load_height = Column(Float, nullable=False)
    material_type = Column(String(100), nullable=True)
    
    # Fare (fixed at creation)
    base_fare = Column(Float, nullable=False)
    loading_charges = Column(Float, default=0, nullable=False)
    total_fare = Column(Float, nullable=False)
    
    # Schedule
    scheduled_date = Column(Date, nullable=False)
    scheduled_time = Column(String(20), nullable=True)
    
    # Overall status
    status = Column(Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False, index=True)
    
    # Owner approval
    approval_status = Column(Enum(OwnerApprovalStatus), default=OwnerApprovalStatus.PENDING, nullable=False, index=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    
    # Set once the vehicle has been credited for delivering this booking
    earnings_credited = Column(Boolean, default=False, nullable=False)
    
    driver_details = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Booking(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
