"""
Booking API Endpoints.

Customers create, view and cancel their bookings; the owner of the booked
vehicle approves or rejects them. Every ownership question goes through the
capability check in ``core.guards``.
"""

from fastapi import APIRouter, Depends, status, Query, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession
from loadmate.app.db.session import get_db
from loadmate.app.models.booking import Booking
from loadmate.app.models.enums import UserRole
from loadmate.app.schemas.booking import (
    BookingCreate, BookingResponse, BookingListResponse,
    BookingStatusUpdate, BookingReject, MessageResponse
)
from loadmate.app.core.guards import require_role, OwnershipGuard, Action, Resource
from loadmate.app.core.dependencies import get_current_user
from loadmate.app.core.exceptions import BadRequestError
from loadmate.app.domain.booking import lifecycle
from loadmate.app.domain.booking.lifecycle import BookingState
from loadmate.app.domain.fleet.suggestion import is_bookable
from loadmate.app.domain.pricing.fare_calculator import calculate_fare, decode_quote
from loadmate.app.services.audit import log_event, AuditAction
from loadmate.app.services.booking_service import (
    get_vehicle_or_404, load_booking_with_vehicle, record_decision,
    change_booking_status, acting_role, serialize_one, list_bookings
)

router = APIRouter(prefix="/bookings", tags=["Bookings"])
ownership_guard = OwnershipGuard()


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    request: Request,
    current_user: dict = Depends(require_role([UserRole.CUSTOMER])),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a booking (Customer only).

    The fare is fixed here. With a ``quote_token`` from /vehicles/suggest the
    quoted distance and fare are used as-is; otherwise the fare is computed
    from ``distance`` (50 km when omitted).
    """
    vehicle = await get_vehicle_or_404(db, booking_data.vehicle_id)

    if not is_bookable(vehicle):
        raise BadRequestError("Vehicle is not available for booking")

    if booking_data.load_details.weight > vehicle.capacity:
        raise BadRequestError(
            "Load exceeds vehicle capacity",
            details={"capacity": vehicle.capacity, "load_weight": booking_data.load_details.weight}
        )

    if booking_data.quote_token:
        quote = decode_quote(booking_data.quote_token)
        if quote is None:
            raise BadRequestError("Fare quote is invalid or has expired")
        if quote.vehicle_id != vehicle.id:
            raise BadRequestError("Fare quote was issued for a different vehicle")
        fare = quote.fare
    else:
        fare = calculate_fare(vehicle.base_fare_per_km, vehicle.loading_charge, booking_data.distance)

    state = BookingState()
    load = booking_data.load_details
    booking = Booking(
        user_id=current_user["user_id"],
        vehicle_id=vehicle.id,
        pickup_location=booking_data.pickup_location.model_dump(),
        drop_location=booking_data.drop_location.model_dump(),
        distance=fare.distance,
        load_weight=load.weight,
        load_length=load.length,
        load_width=load.width,
        load_height=load.height,
        material_type=load.material_type,
        base_fare=fare.base_fare,
        loading_charges=fare.loading_charges,
        total_fare=fare.total_fare,
        scheduled_date=booking_data.scheduled_date,
        scheduled_time=booking_data.scheduled_time,
        notes=booking_data.notes,
        earnings_credited=False
    )
    state.apply_to(booking)

    db.add(booking)
    await db.commit()
    await db.refresh(booking)

    await log_event(
        db=db,
        action=AuditAction.BOOKING_CREATED,
        actor_id=current_user["user_id"],
        actor_email=current_user["sub"],
        resource_type="booking",
        resource_id=booking.id,
        metadata={
            "vehicle_id": vehicle.id,
            "total_fare": booking.total_fare,
            "distance": booking.distance,
            "quoted": bool(booking_data.quote_token)
        },
        ip_address=request.client.host if request.client else None
    )

    return await serialize_one(db, booking, vehicle)


@router.get("/my-bookings", response_model=BookingListResponse)
async def list_my_bookings(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Bookings made by the current user, most recent first."""
    return await list_bookings(db, [Booking.user_id == current_user["user_id"]], page, page_size)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int = Path(..., description="Booking ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get a booking.

    Visible to the requester, the owner of the booked vehicle and admins.
    """
    booking, vehicle = await load_booking_with_vehicle(db, booking_id)
    ownership_guard.enforce(current_user, Action.VIEW_BOOKING, Resource.for_booking(booking, vehicle), "access this booking")
    return await serialize_one(db, booking, vehicle)


@router.put("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int = Path(..., description="Booking ID"),
    status_data: BookingStatusUpdate = ...,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a booking's status.

    The requester, the vehicle's owner and admins may all set it. Only the
    owner marking the booking delivered credits the vehicle.
    """
    booking, vehicle = await load_booking_with_vehicle(db, booking_id)
    ownership_guard.enforce(
        current_user, Action.UPDATE_BOOKING_STATUS,
        Resource.for_booking(booking, vehicle), "update this booking"
    )

    actor_role = acting_role(current_user, booking, vehicle)
    before, after, credited = await change_booking_status(db, booking, status_data.status, actor_role)

    if before != after:
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
                "acting_as": actor_role.value,
                "earnings_credited": credited
            }
        )

    return await serialize_one(db, booking, vehicle)


@router.delete("/{booking_id}", response_model=MessageResponse)
async def cancel_booking(
    booking_id: int = Path(..., description="Booking ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Cancel a booking (requester only).

    The booking is kept with status ``cancelled``.
    """
    booking, vehicle = await load_booking_with_vehicle(db, booking_id)
    ownership_guard.enforce(current_user, Action.CANCEL_BOOKING, Resource.for_booking(booking, vehicle), "cancel this booking")

    before = BookingState.of(booking)
    after = lifecycle.cancel(before)
    after.apply_to(booking)
    await db.commit()

    if before != after:
        await log_event(
            db=db,
            action=AuditAction.BOOKING_CANCELLED,
            actor_id=current_user["user_id"],
            actor_email=current_user["sub"],
            resource_type="booking",
            resource_id=booking.id,
            metadata={"from": before.status.value}
        )

    return MessageResponse(message="Booking cancelled successfully")


@router.put("/{booking_id}/approve", response_model=BookingResponse)
async def approve_booking(
    booking_id: int = Path(..., description="Booking ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Approve a booking (owner of the booked vehicle only).

    The booking becomes confirmed. A booking can be decided once.
    """
    booking, vehicle = await load_booking_with_vehicle(db, booking_id)
    ownership_guard.enforce(current_user, Action.DECIDE_BOOKING, Resource.for_booking(booking, vehicle), "approve this booking")

    before = BookingState.of(booking)
    after = lifecycle.approve(before)
    await record_decision(db, booking, before, after)

    await log_event(
        db=db,
        action=AuditAction.BOOKING_APPROVED,
        actor_id=current_user["user_id"],
        actor_email=current_user["sub"],
        target_user_id=booking.user_id,
        resource_type="booking",
        resource_id=booking.id
    )

    return await serialize_one(db, booking, vehicle)


@router.put("/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(
    booking_id: int = Path(..., description="Booking ID"),
    reject_data: BookingReject = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Reject a booking (owner of the booked vehicle only).

    The booking becomes cancelled; the reason defaults to "No reason provided".
    """
    booking, vehicle = await load_booking_with_vehicle(db, booking_id)
    ownership_guard.enforce(current_user, Action.DECIDE_BOOKING, Resource.for_booking(booking, vehicle), "reject this booking")

    reason = reject_data.rejection_reason if reject_data else None
    before = BookingState.of(booking)
    after = lifecycle.reject(before, reason)
    await record_decision(db, booking, before, after)

    await log_event(
        db=db,
        action=AuditAction.BOOKING_REJECTED,
        actor_id=current_user["user_id"],
        actor_email=current_user["sub"],
        target_user_id=booking.user_id,
        resource_type="booking",
        resource_id=booking.id,
        metadata={"reason": after.rejection_reason}
    )

    return await serialize_one(db, booking, vehicle)
