"""
Admin API Schema Definitions.

Pydantic schemas for admin endpoints.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Dict
from loadmate.app.models.enums import UserRole, AuthProvider, ApprovalStatus, VehicleType
from loadmate.app.schemas.booking import BookingResponse
from loadmate.app.schemas.vehicle import VehicleResponse, VehicleWithOwner


class UserListItem(BaseModel):
    """Schema for user in list response."""
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    auth_provider: AuthProvider
    business_name: Optional[str] = None
    is_verified: bool
    vehicles_owned: List[int] = []
    created_at: datetime
    
    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """Schema for list users response."""
    users: List[UserListItem]
    total: int
    page: int
    page_size: int


class RoleUpdateRequest(BaseModel):
    role: UserRole


class VehicleApprovalRequest(BaseModel):
    approval_status: ApprovalStatus


class AdminVehicleListResponse(BaseModel):
    """All vehicles with their owners."""
    vehicles: List[VehicleWithOwner]
    total: int
    page: int
    page_size: int


class AdminActionResponse(BaseModel):
    """Schema for admin action response."""
    success: bool
    message: str
    user_id: int
    action: str
    audit_log_id: int


class AdminStatsResponse(BaseModel):
    """Platform-wide dashboard numbers."""
    total_users: int
    total_customers: int
    total_owners: int
    total_vehicles: int
    total_bookings: int
    bookings_by_status: Dict[str, int]
    total_revenue: float
    recent_bookings: List[BookingResponse]


class VehicleTypeShowcase(BaseModel):
    """One representative vehicle per type."""
    vehicle_type: VehicleType
    vehicle: VehicleResponse


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[int]
    actor_email: Optional[str]
    action: str
    target_user_id: Optional[int]
    resource_type: Optional[str]
    resource_id: Optional[int]
    meta_data: Optional[dict]
    ip_address: Optional[str]
    timestamp: datetime
    
    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int
    page: int
    page_size: int
