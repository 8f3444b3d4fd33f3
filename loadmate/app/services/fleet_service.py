"""
Fleet registry helpers shared by the vehicle, owner and admin endpoints.
"""

from typing import Dict, Iterable, Optional
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from loadmate.app.models.user import User
from loadmate.app.models.vehicle import Vehicle
from loadmate.app.schemas.vehicle import OwnerSummary, VehicleResponse


async def ensure_unique_registration(db: AsyncSession, registration_number: Optional[str]) -> None:
    """Raise 400 if another vehicle already uses ``registration_number``."""
    if not registration_number:
        return
    existing = await db.execute(
        select(Vehicle.id).where(Vehicle.registration_number == registration_number)
    )
    if existing.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Vehicle with this registration number already exists"
        )


async def owners_by_id(db: AsyncSession, vehicles: Iterable[Vehicle]) -> Dict[int, User]:
    """Load the owners of ``vehicles`` in one query. Deleted owners are simply absent."""
    owner_ids = {v.owner_id for v in vehicles if v.owner_id is not None}
    if not owner_ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(owner_ids)))
    return {user.id: user for user in result.scalars()}


def with_owner(vehicle: Vehicle, owner: Optional[User]) -> dict:
    return {
        **VehicleResponse.model_validate(vehicle).model_dump(),
        "owner": OwnerSummary.model_validate(owner) if owner else None,
    }
