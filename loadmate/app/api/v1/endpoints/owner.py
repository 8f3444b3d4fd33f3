"""
Vehicle Owner API Endpoints.

Owner self-registration, dashboard stats, fleet management and handling of
bookings on the owner's vehicles. Ownership is enforced on every record.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from loadmate.app.db.session import get_db
from loadmate.app.models.booking import Booking
from loadmate.app.models.booking_enums import OwnerApprovalStatus
from loadmate.app.models.user import User
from loadmate.app.models.vehicle import Vehicle
from loadmate.app.models.enums import UserRole, ApprovalStatus
from loadmate.app.schemas.auth import UserResponse
from loadmate.app.schemas.booking import BookingResponse, BookingListResponse, MessageResponse
from loadmate.app.schemas.owner import OwnerRegister, OwnerStatsResponse, OwnerBookingStatusUpdate
from loadmate.app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse, VehicleListResponse
from loadmate.app.core.guards import require_role, require_owner, OwnershipGuard, Action, Resource
from loadmate.app.core.dependencies import get_current_user
from loadmate.app.services.analytics import AnalyticsService
from loadmate.app.services.fleet_service import ensure_unique_registration
from loadmate.app.services.audit import log_event, AuditAction
from loadmate.app.services.booking_service import (
    get_vehicle_or_404, load_booking_with_vehicle, change_booking_status,
    owned_vehicle_ids, serialize_one, list_bookings
)

router = APIRouter(prefix="/owner", tags=["Vehicle Owner"])
ownership_guard = OwnershipGuard()


@router.post("/register", response_model=UserResponse)
async def register_as_owner(
    owner_data: OwnerRegister,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Upgrade the current account to a vehicle owner.

    Owners are verified on registration. Admin accounts cannot be downgraded
    this way.
    """
    result = await db.execute(select(User).where(User.id == current_user["user_id"]))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if user.role == UserRole.OWNER:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Already registered as vehicle owner"
        )

    if user.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admin accounts cannot register as vehicle owners"
        )

    user.role = UserRole.OWNER
    user.business_name = owner_data.business_name
    user.license_number = owner_data.license_number
    user.is_verified = True
    user.vehicles_owned = list(user.vehicles_owned or [])

    await db.commit()
    await db.refresh(user)

    await log_event(
        db=db,
        action=AuditAction.OWNER_REGISTERED,
        actor_id=user.id,
        actor_email=user.email,
        target_user_id=user.id,
        metadata={"business_name": user.business_name}
    )

    return UserResponse.model_validate(user)


@router.get("/stats", response_model=OwnerStatsResponse)
async def get_owner_stats(
    current_user: dict = Depends(require_owner),
    db: AsyncSession = Depends(get_db)
):
    """Dashboard numbers for the current owner."""
    return await AnalyticsService.get_owner_stats(db, current_user["user_id"])


# Fleet management

@router.post("/vehicles", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def add_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_owner),
    db: AsyncSession = Depends(get_db)
):
    """
    List a new vehicle (Owner only).

    Owner vehicles are approved and available immediately.
    """
    await ensure_unique_registration(db, vehicle_data.registration_number)

    vehicle = Vehicle(
        **vehicle_data.model_dump(exclude={"is_available"}),
        owner_id=current_user["user_id"],
        approval_status=ApprovalStatus.APPROVED,
        is_available=True,
        gallery=[]
    )
    db.add(vehicle)
    await db.flush()

    # Keep the owner's vehicle list in step
    owner = (await db.execute(select(User).where(User.id == current_user["user_id"]))).scalar_one()
    owner.vehicles_owned = [*(owner.vehicles_owned or []), vehicle.id]

    await db.commit()
    await db.refresh(vehicle)

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_CREATED,
        actor_id=current_user["user_id"],
        actor_email=current_user["sub"],
        resource_type="vehicle",
        resource_id=vehicle.id,
        metadata={
            "vehicle_type": vehicle.vehicle_type.value,
            "registration_number": vehicle.registration_number
        }
    )

    return VehicleResponse.model_validate(vehicle)


@router.get("/vehicles", response_model=VehicleListResponse)
async def list_own_vehicles(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_owner),
    db: AsyncSession = Depends(get_db)
):
    """List the current owner's vehicles, newest first."""
    user_id = current_user["user_id"]

    total_result = await db.execute(select(func.count(Vehicle.id)).where(Vehicle.owner_id == user_id))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = select(Vehicle).where(
        Vehicle.owner_id == user_id
    ).order_by(Vehicle.created_at.desc(), Vehicle.id.desc()).offset(offset).limit(page_size)
    result = await db.execute(query)

    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size
    )


@router.put("/vehicles/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    vehicle_data: VehicleUpdate = ...,
    current_user: dict = Depends(require_owner),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a vehicle's specification or availability (Owner only).

    Can only update own vehicles (ownership enforced).
    """
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    ownership_guard.enforce(current_user, Action.MANAGE_VEHICLE, Resource.for_vehicle(vehicle), "update this vehicle")

    update_data = vehicle_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(vehicle, field, value)

    await db.commit()
    await db.refresh(vehicle)

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_UPDATED,
        actor_id=current_user["user_id"],
        actor_email=current_user["sub"],
        resource_type="vehicle",
        resource_id=vehicle.id,
        metadata={"updated_fields": list(update_data.keys())}
    )

    return VehicleResponse.model_validate(vehicle)


@router.delete("/vehicles/{vehicle_id}", response_model=MessageResponse)
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_role([UserRole.OWNER, UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a vehicle (its owner or an admin).

    Bookings that reference the vehicle are kept.
    """
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    ownership_guard.enforce(current_user, Action.MANAGE_VEHICLE, Resource.for_vehicle(vehicle), "delete this vehicle")

    if vehicle.owner_id is not None:
        owner = (await db.execute(select(User).where(User.id == vehicle.owner_id))).scalar_one_or_none()
        if owner is not None:
            owner.vehicles_owned = [vid for vid in (owner.vehicles_owned or []) if vid != vehicle.id]

    await db.delete(vehicle)
    await db.commit()

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_DELETED,
        actor_id=current_user["user_id"],
        actor_email=current_user["sub"],
        resource_type="vehicle",
        resource_id=vehicle_id,
        metadata={"owner_id": vehicle.owner_id}
    )

    return MessageResponse(message="Vehicle deleted successfully")


# Bookings on the owner's vehicles

@router.get("/bookings", response_model=BookingListResponse)
async def list_owner_bookings(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_owner),
    db: AsyncSession = Depends(get_db)
):
    """Bookings for any of the current owner's vehicles, most recent first."""
    conditions = [Booking.vehicle_id.in_(owned_vehicle_ids(current_user["user_id"]))]
    return await list_bookings(db, conditions, page, page_size)


@router.get("/bookings/pending", response_model=BookingListResponse)
async def list_pending_bookings(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_owner),
    db: AsyncSession = Depends(get_db)
):
    """Bookings awaiting the current owner's decision."""
    conditions = [
        Booking.vehicle_id.in_(owned_vehicle_ids(current_user["user_id"])),
        Booking.approval_status == OwnerApprovalStatus.PENDING
    ]
    return await list_bookings(db, conditions, page, page_size)


@router.put("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_owner_booking_status(
    booking_id: int = Path(..., description="Booking ID"),
    status_data: OwnerBookingStatusUpdate = ...,
    current_user: dict = Depends(require_owner),
    db: AsyncSession = Depends(get_db)
):
    """
    Set the status of a booking on one of the owner's vehicles, optionally
    assigning a driver.

    The first time a booking is marked delivered its fare is added to the
    vehicle's earnings and its trip count goes up by one; repeating the
    update does not count it again.
    """
    booking, vehicle = await load_booking_with_vehicle(db, booking_id)
    resource = Resource(owner_id=vehicle.owner_id if vehicle is not None else None)
    ownership_guard.enforce(current_user, Action.MANAGE_VEHICLE, resource, "update this booking")

    driver_details = status_data.driver_details.model_dump() if status_data.driver_details else None
    before, after, credited = await change_booking_status(
        db, booking, status_data.status, UserRole.OWNER, driver_details
    )

    if before != after or driver_details is not None:
        await log_event(
            db=db,
            action=AuditAction.BOOKING_STATUS_CHANGED,
            actor_id=current_user["user_id"],
            actor_email=current_user["sub"],
            resource_type="booking",
            resource_id=booking.id,
            metadata={
                "from": before.status.value,
                "to": after.status.value,
                "acting_as": UserRole.OWNER.value,
                "driver_assigned": driver_details is not None
            }
        )

    if credited:
        await log_event(
            db=db,
            action=AuditAction.EARNINGS_CREDITED,
            actor_id=current_user["user_id"],
            actor_email=current_user["sub"],
            resource_type="vehicle",
            resource_id=booking.vehicle_id,
            metadata={"booking_id": booking.id, "amount": booking.total_fare}
        )

    return await serialize_one(db, booking)
