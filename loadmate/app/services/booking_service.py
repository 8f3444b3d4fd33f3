"""
Booking persistence helpers.

Loads bookings with their vehicle, persists lifecycle transitions, credits a
vehicle once per delivered booking and builds API responses.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from loadmate.app.core.exceptions import ResourceNotFoundError, StateConflictError
from loadmate.app.domain.booking.lifecycle import BookingState, change_status, enters_delivered
from loadmate.app.models.booking import Booking
from loadmate.app.models.booking_enums import BookingStatus, OwnerApprovalStatus
from loadmate.app.models.enums import UserRole
from loadmate.app.models.user import User
from loadmate.app.models.vehicle import Vehicle
from loadmate.app.schemas.booking import (
    BookingCustomerSummary,
    BookingListResponse,
    BookingResponse,
    BookingVehicleSummary,
    Fare,
    LoadDetails,
    OwnerApproval,
)

logger = logging.getLogger("loadmate.bookings")


async def get_vehicle_or_404(db: AsyncSession, vehicle_id: int) -> Vehicle:
    result = await db.execute(select(Vehicle).where(Vehicle.id == vehicle_id))
    vehicle = result.scalar_one_or_none()
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", vehicle_id)
    return vehicle


async def get_booking_or_404(db: AsyncSession, booking_id: int) -> Booking:
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if not booking:
        raise ResourceNotFoundError("Booking", booking_id)
    return booking


async def load_booking_with_vehicle(db: AsyncSession, booking_id: int) -> Tuple[Booking, Optional[Vehicle]]:
    """
    Fetch a booking and the vehicle it references.

    The vehicle may be gone (deleted after booking); callers then see None.
    """
    booking = await get_booking_or_404(db, booking_id)
    result = await db.execute(select(Vehicle).where(Vehicle.id == booking.vehicle_id))
    return booking, result.scalar_one_or_none()


async def record_decision(db: AsyncSession, booking: Booking, before: BookingState, after: BookingState) -> None:
    """
    Persist an approve/reject decision.

    The UPDATE only matches while the booking is still undecided, so when two
    decisions race exactly one of them is stored.
    """
    result = await db.execute(
        update(Booking)
        .where(
            Booking.id == booking.id,
            Booking.approval_status == OwnerApprovalStatus.PENDING,
            Booking.status == before.status,
        )
        .values(
            status=after.status,
            approval_status=after.approval,
            approved_at=after.approved_at,
            rejected_at=after.rejected_at,
            rejection_reason=after.rejection_reason,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise StateConflictError("Booking has already been processed")

    await db.commit()
    await db.refresh(booking)


async def credit_delivery(db: AsyncSession, booking: Booking) -> bool:
    """
    Add a delivered booking's fare to its vehicle, at most once per booking.

    Flips ``earnings_credited`` with a guarded UPDATE first; only the request
    that wins that flip increments the vehicle counters. The caller commits.

    Returns:
        True if this call credited the vehicle
    """
    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.earnings_credited.is_(False))
        .values(earnings_credited=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False

    await db.execute(
        update(Vehicle)
        .where(Vehicle.id == booking.vehicle_id)
        .values(
            total_earnings=Vehicle.total_earnings + booking.total_fare,
            completed_trips=Vehicle.completed_trips + 1,
        )
        .execution_options(synchronize_session=False)
    )
    logger.info("Credited vehicle %s with %.2f for booking %s", booking.vehicle_id, booking.total_fare, booking.id)
    return True


def serialize_booking(
    booking: Booking,
    vehicle: Optional[Vehicle] = None,
    customer: Optional[User] = None
) -> BookingResponse:
    """Build the API shape of a booking, with summaries of whatever related records still exist."""
    return BookingResponse(
        id=booking.id,
        user_id=booking.user_id,
        vehicle_id=booking.vehicle_id,
        pickup_location=booking.pickup_location,
        drop_location=booking.drop_location,
        load_details=LoadDetails(
            weight=booking.load_weight,
            length=booking.load_length,
            width=booking.load_width,
            height=booking.load_height,
            material_type=booking.material_type,
        ),
        distance=booking.distance,
        fare=Fare(
            base_fare=booking.base_fare,
            loading_charges=booking.loading_charges,
            total_fare=booking.total_fare,
        ),
        scheduled_date=booking.scheduled_date,
        scheduled_time=booking.scheduled_time,
        status=booking.status,
        owner_approval=OwnerApproval(
            status=booking.approval_status,
            approved_at=booking.approved_at,
            rejected_at=booking.rejected_at,
            rejection_reason=booking.rejection_reason,
        ),
        driver_details=booking.driver_details,
        notes=booking.notes,
        vehicle=BookingVehicleSummary(
            id=vehicle.id,
            vehicle_type=vehicle.vehicle_type,
            registration_number=vehicle.registration_number,
            owner_id=vehicle.owner_id,
            image=vehicle.image,
        ) if vehicle is not None else None,
        customer=BookingCustomerSummary(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            phone=customer.phone,
        ) if customer is not None else None,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


async def serialize_bookings(db: AsyncSession, bookings: Iterable[Booking]) -> List[BookingResponse]:
    """Serialize many bookings with two lookups instead of two per booking."""
    bookings = list(bookings)
    if not bookings:
        return []

    vehicle_ids = {b.vehicle_id for b in bookings}
    user_ids = {b.user_id for b in bookings}

    vehicles: Dict[int, Vehicle] = {
        v.id: v for v in (await db.execute(select(Vehicle).where(Vehicle.id.in_(vehicle_ids)))).scalars()
    }
    users: Dict[int, User] = {
        u.id: u for u in (await db.execute(select(User).where(User.id.in_(user_ids)))).scalars()
    }
    return [serialize_booking(b, vehicles.get(b.vehicle_id), users.get(b.user_id)) for b in bookings]


async def serialize_one(db: AsyncSession, booking: Booking, vehicle: Optional[Vehicle] = None) -> BookingResponse:
    if vehicle is None:
        vehicle = (await db.execute(select(Vehicle).where(Vehicle.id == booking.vehicle_id))).scalar_one_or_none()
    customer = (await db.execute(select(User).where(User.id == booking.user_id))).scalar_one_or_none()
    return serialize_booking(booking, vehicle, customer)


def owned_vehicle_ids(owner_id: int):
    """Subquery of the ids of vehicles held by ``owner_id``."""
    return select(Vehicle.id).where(Vehicle.owner_id == owner_id)


async def list_bookings(
    db: AsyncSession,
    conditions: list,
    page: int,
    page_size: int
) -> BookingListResponse:
    """Paginated bookings matching ``conditions``, newest first."""
    total_result = await db.execute(select(func.count(Booking.id)).where(*conditions))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = (
        select(Booking)
        .where(*conditions)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .offset(offset)
        .limit(page_size)
    )
    result = await db.execute(query)

    return BookingListResponse(
        bookings=await serialize_bookings(db, result.scalars().all()),
        total=total,
        page=page,
        page_size=page_size
    )


def acting_role(current_user: dict, booking: Booking, vehicle: Optional[Vehicle]) -> UserRole:
    """
    The capacity in which ``current_user`` acts on ``booking``.

    A person's relation to the booking wins over their account role, so an
    owner who booked someone else's vehicle acts as a customer on it.
    """
    user_id = current_user.get("user_id")
    if booking.user_id == user_id:
        return UserRole.CUSTOMER
    if vehicle is not None and vehicle.owner_id is not None and vehicle.owner_id == user_id:
        return UserRole.OWNER
    return UserRole(current_user.get("role"))


async def change_booking_status(
    db: AsyncSession,
    booking: Booking,
    target: BookingStatus,
    actor_role: UserRole,
    driver_details: Optional[dict] = None
) -> Tuple[BookingState, BookingState, bool]:
    """
    Apply a status update and persist it.

    Only the vehicle's owner marking the booking delivered credits the
    vehicle; admin corrections never touch the counters.

    Returns:
        (state before, state after, whether the vehicle was credited)

    Raises:
        StateConflictError: if the lifecycle does not allow the move
    """
    before = BookingState.of(booking)
    after = change_status(before, target)
    after.apply_to(booking)
    if driver_details is not None:
        booking.driver_details = driver_details

    credited = False
    if actor_role == UserRole.OWNER and enters_delivered(before, after):
        credited = await credit_delivery(db, booking)

    await db.commit()
    await db.refresh(booking)
    return before, after, credited
