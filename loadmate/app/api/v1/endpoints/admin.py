"""
Admin API Endpoints.

Platform moderation: dashboard stats, users, vehicle approval, booking
corrections and the audit trail. Every endpoint is admin-only.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional
from loadmate.app.db.session import get_db
from loadmate.app.models.booking import Booking
from loadmate.app.models.booking_enums import BookingStatus
from loadmate.app.models.user import User
from loadmate.app.models.vehicle import Vehicle
from loadmate.app.models.enums import UserRole, ApprovalStatus
from loadmate.app.schemas.admin import (
    UserListResponse, UserListItem, RoleUpdateRequest, VehicleApprovalRequest,
    AdminActionResponse, AdminStatsResponse, AdminVehicleListResponse,
    VehicleTypeShowcase, AuditTrailResponse, AuditLogResponse
)
from loadmate.app.schemas.booking import BookingResponse, BookingListResponse, BookingStatusUpdate
from loadmate.app.schemas.vehicle import VehicleResponse, VehicleWithOwner
from loadmate.app.core.guards import require_admin
from loadmate.app.services.analytics import AnalyticsService
from loadmate.app.services.audit import log_event, AuditAction, get_audit_trail
from loadmate.app.services.booking_service import (
    get_vehicle_or_404, load_booking_with_vehicle, change_booking_status,
    serialize_one, list_bookings
)
from loadmate.app.services.fleet_service import owners_by_id, with_owner

router = APIRouter(prefix="/admin", tags=["Admin"])


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/stats", response_model=AdminStatsResponse)
async def get_dashboard_stats(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Platform-wide counts, revenue and the most recent bookings."""
    return await AnalyticsService.get_admin_stats(db)


@router.get("/vehicle-types", response_model=List[VehicleTypeShowcase])
async def get_vehicle_types(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """One representative vehicle per vehicle type, for the fleet showcase."""
    return await AnalyticsService.get_vehicle_type_showcase(db)


# Users

@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List all users in the system (admin-only).

    Returns paginated user list, newest first.
    """
    conditions = [User.role == role] if role else []

    total_result = await db.execute(select(func.count(User.id)).where(*conditions))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = select(User).where(*conditions).order_by(
        User.created_at.desc(), User.id.desc()
    ).offset(offset).limit(page_size)
    result = await db.execute(query)
    users = result.scalars().all()

    return UserListResponse(
        users=[UserListItem.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/users/{user_id}", response_model=UserListItem)
async def get_user(
    user_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Get detailed information about a specific user (admin-only)."""
    return UserListItem.model_validate(await _get_user_or_404(db, user_id))


@router.put("/users/{user_id}/role", response_model=UserListItem)
async def update_user_role(
    user_id: int,
    role_data: RoleUpdateRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Change a user's role (admin-only).

    Takes effect on the user's next request. Admins cannot change their own role.
    """
    target_user = await _get_user_or_404(db, user_id)

    if target_user.id == admin["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot change your own role"
        )

    previous_role = target_user.role
    target_user.role = role_data.role
    await db.commit()
    await db.refresh(target_user)

    if previous_role != target_user.role:
        await log_event(
            db=db,
            action=AuditAction.ROLE_CHANGED,
            actor_id=admin["user_id"],
            actor_email=admin["sub"],
            target_user_id=target_user.id,
            metadata={"from": previous_role.value, "to": target_user.role.value}
        )

    return UserListItem.model_validate(target_user)


@router.delete("/users/{user_id}", response_model=AdminActionResponse)
async def delete_user(
    user_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Permanently delete a user (admin-only).

    The user's vehicles and bookings are left in place with their old
    owner/requester id. Existing tokens stop working immediately because
    every request re-reads the account.
    """
    target_user = await _get_user_or_404(db, user_id)

    # Prevent deleting self
    if target_user.id == admin["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete yourself"
        )

    email = target_user.email
    await db.delete(target_user)
    await db.commit()

    audit_log = await log_event(
        db=db,
        action=AuditAction.USER_DELETED,
        actor_id=admin["user_id"],
        actor_email=admin["sub"],
        target_user_id=user_id,
        metadata={"email": email}
    )

    return AdminActionResponse(
        success=True,
        message="User deleted successfully",
        user_id=user_id,
        action=AuditAction.USER_DELETED,
        audit_log_id=audit_log.id
    )


# Vehicles

@router.get("/vehicles", response_model=AdminVehicleListResponse)
async def list_all_vehicles(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    approval_status: Optional[ApprovalStatus] = Query(None, description="Filter by approval status"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List every vehicle with its owner, newest first (admin-only)."""
    conditions = [Vehicle.approval_status == approval_status] if approval_status else []

    total_result = await db.execute(select(func.count(Vehicle.id)).where(*conditions))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = select(Vehicle).where(*conditions).order_by(
        Vehicle.created_at.desc(), Vehicle.id.desc()
    ).offset(offset).limit(page_size)
    result = await db.execute(query)
    vehicles = result.scalars().all()

    owners = await owners_by_id(db, vehicles)
    return AdminVehicleListResponse(
        vehicles=[VehicleWithOwner(**with_owner(v, owners.get(v.owner_id))) for v in vehicles],
        total=total,
        page=page,
        page_size=page_size
    )


@router.put("/vehicles/{vehicle_id}/approval", response_model=VehicleResponse)
async def update_vehicle_approval(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    approval_data: VehicleApprovalRequest = ...,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Approve, reject or re-queue a vehicle (admin-only).

    Approving also makes the vehicle available.
    """
    vehicle = await get_vehicle_or_404(db, vehicle_id)

    previous = vehicle.approval_status
    vehicle.approval_status = approval_data.approval_status
    if approval_data.approval_status == ApprovalStatus.APPROVED:
        vehicle.is_available = True

    await db.commit()
    await db.refresh(vehicle)

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_APPROVAL_CHANGED,
        actor_id=admin["user_id"],
        actor_email=admin["sub"],
        target_user_id=vehicle.owner_id,
        resource_type="vehicle",
        resource_id=vehicle.id,
        metadata={
            "from": previous.value if previous else None,
            "to": vehicle.approval_status.value
        }
    )

    return VehicleResponse.model_validate(vehicle)


# Bookings

@router.get("/bookings", response_model=BookingListResponse)
async def list_all_bookings(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by status"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List every booking, most recent first (admin-only)."""
    conditions = [Booking.status == booking_status] if booking_status else []
    return await list_bookings(db, conditions, page, page_size)


@router.put("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int = Path(..., description="Booking ID"),
    status_data: BookingStatusUpdate = ...,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Correct a booking's status (admin-only).

    Admins may reopen delivered or cancelled bookings but cannot confirm a
    booking the owner has not approved. Vehicle earnings are not touched.
    """
    booking, vehicle = await load_booking_with_vehicle(db, booking_id)
    before, after, _ = await change_booking_status(db, booking, status_data.status, UserRole.ADMIN)

    if before != after:
        await log_event(
            db=db,
            action=AuditAction.BOOKING_STATUS_CHANGED,
            actor_id=admin["user_id"],
            actor_email=admin["sub"],
            target_user_id=booking.user_id,
            resource_type="booking",
            resource_id=booking.id,
            metadata={
                "from": before.status.value,
                "to": after.status.value,
                "acting_as": UserRole.ADMIN.value
            }
        )

    return await serialize_one(db, booking, vehicle)


# Audit trail

@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    action: Optional[str] = Query(None, description="Filter by action type"),
    resource_type: Optional[str] = Query(None, description="Filter by resource type (booking, vehicle)"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=200, description="Items per page"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Get audit trail with optional filtering (admin-only).

    Returns recent audit logs for security monitoring and compliance.
    """
    logs, total = await get_audit_trail(
        db=db,
        action=action,
        resource_type=resource_type,
        page=page,
        page_size=page_size
    )

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        page_size=page_size
    )
