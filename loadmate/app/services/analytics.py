"""
Analytics Service.

Handles data aggregation for the admin and owner dashboards.
Focused on READ-ONLY operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from typing import List

from loadmate.app.core.config import settings
from loadmate.app.models.booking import Booking
from loadmate.app.models.booking_enums import BookingStatus
from loadmate.app.models.enums import UserRole, ApprovalStatus, VehicleType
from loadmate.app.models.user import User
from loadmate.app.models.vehicle import Vehicle
from loadmate.app.schemas.admin import AdminStatsResponse, VehicleTypeShowcase
from loadmate.app.schemas.owner import OwnerStatsResponse
from loadmate.app.schemas.vehicle import VehicleResponse
from loadmate.app.services.booking_service import owned_vehicle_ids, serialize_bookings

REVENUE_STATUSES = [BookingStatus.DELIVERED, BookingStatus.IN_TRANSIT]
ACTIVE_BOOKING_STATUSES = [BookingStatus.CONFIRMED, BookingStatus.IN_TRANSIT]


class AnalyticsService:

    @staticmethod
    async def get_admin_stats(db: AsyncSession) -> AdminStatsResponse:
        """Platform-wide counts, revenue and the most recent bookings."""

        async def count_users(*conditions) -> int:
            return (await db.execute(select(func.count(User.id)).where(*conditions))).scalar() or 0

        users = await count_users()
        customers = await count_users(User.role == UserRole.CUSTOMER)
        owners = await count_users(User.role == UserRole.OWNER)
        vehicles = (await db.execute(select(func.count(Vehicle.id)))).scalar() or 0

        # Bookings grouped by overall status; statuses with no bookings report 0
        by_status = {s.value: 0 for s in BookingStatus}
        rows = await db.execute(select(Booking.status, func.count(Booking.id)).group_by(Booking.status))
        for booking_status, count in rows:
            by_status[booking_status.value] = count

        # Revenue counts work that is delivered or underway
        revenue_query = select(func.sum(Booking.total_fare)).where(Booking.status.in_(REVENUE_STATUSES))
        revenue = (await db.execute(revenue_query)).scalar() or 0.0

        recent = await db.execute(
            select(Booking)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .limit(settings.recent_bookings_limit)
        )

        return AdminStatsResponse(
            total_users=users,
            total_customers=customers,
            total_owners=owners,
            total_vehicles=vehicles,
            total_bookings=sum(by_status.values()),
            bookings_by_status=by_status,
            total_revenue=revenue,
            recent_bookings=await serialize_bookings(db, recent.scalars().all())
        )

    @staticmethod
    async def get_owner_stats(db: AsyncSession, owner_id: int) -> OwnerStatsResponse:
        """Fleet and booking numbers for one owner."""

        async def count_vehicles(*conditions) -> int:
            query = select(func.count(Vehicle.id)).where(Vehicle.owner_id == owner_id, *conditions)
            return (await db.execute(query)).scalar() or 0

        async def count_bookings(*conditions) -> int:
            query = select(func.count(Booking.id)).where(
                Booking.vehicle_id.in_(owned_vehicle_ids(owner_id)), *conditions
            )
            return (await db.execute(query)).scalar() or 0

        earnings_query = select(func.sum(Booking.total_fare)).where(
            Booking.vehicle_id.in_(owned_vehicle_ids(owner_id)),
            Booking.status == BookingStatus.DELIVERED
        )

        return OwnerStatsResponse(
            total_vehicles=await count_vehicles(),
            active_vehicles=await count_vehicles(Vehicle.is_available.is_(True)),
            approved_vehicles=await count_vehicles(Vehicle.approval_status == ApprovalStatus.APPROVED),
            pending_vehicles=await count_vehicles(Vehicle.approval_status == ApprovalStatus.PENDING),
            total_bookings=await count_bookings(),
            active_bookings=await count_bookings(Booking.status.in_(ACTIVE_BOOKING_STATUSES)),
            total_earnings=(await db.execute(earnings_query)).scalar() or 0.0
        )

    @staticmethod
    async def get_vehicle_type_showcase(db: AsyncSession) -> List[VehicleTypeShowcase]:
        """The oldest approved (or never moderated) vehicle of each type, in type order."""
        showcase = []
        for vehicle_type in VehicleType:
            result = await db.execute(
                select(Vehicle)
                .where(
                    Vehicle.vehicle_type == vehicle_type,
                    or_(Vehicle.approval_status == ApprovalStatus.APPROVED, Vehicle.approval_status.is_(None))
                )
                .order_by(Vehicle.created_at.asc(), Vehicle.id.asc())
                .limit(1)
            )
            vehicle = result.scalar_one_or_none()
            if vehicle is not None:
                showcase.append(VehicleTypeShowcase(
                    vehicle_type=vehicle_type,
                    vehicle=VehicleResponse.model_validate(vehicle)
                ))
        return showcase
