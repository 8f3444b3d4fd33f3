"""
Vehicle Suggestion Filter.

Selects vehicles that can carry a requested load:

    capacity >= weight
    AND is_available
    AND approval_status IN (approved, NULL)
    [AND length >= L AND width >= W AND height >= H   -- only when all three are given]

ordered by capacity ascending so the smallest adequate vehicle comes first.
The SQL form (``suggestion_query``) and the in-memory form (``matches``)
encode the same predicate.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Select, and_, or_, select

from loadmate.app.models.enums import ApprovalStatus
from loadmate.app.models.vehicle import Vehicle


@dataclass(frozen=True)
class LoadRequirements:
    weight: float
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def has_dimensions(self) -> bool:
        return self.length is not None and self.width is not None and self.height is not None


def bookable_clause():
    """SQL condition for vehicles customers may book."""
    return and_(
        Vehicle.is_available.is_(True),
        or_(
            Vehicle.approval_status == ApprovalStatus.APPROVED,
            Vehicle.approval_status.is_(None),
        ),
    )


def is_bookable(vehicle: Vehicle) -> bool:
    return bool(vehicle.is_available) and vehicle.approval_status in (ApprovalStatus.APPROVED, None)


def suggestion_query(requirements: LoadRequirements) -> Select:
    """Build the SELECT for vehicles matching ``requirements``."""
    conditions = [Vehicle.capacity >= requirements.weight, bookable_clause()]
    if requirements.has_dimensions:
        conditions.extend([
            Vehicle.length >= requirements.length,
            Vehicle.width >= requirements.width,
            Vehicle.height >= requirements.height,
        ])
    return select(Vehicle).where(*conditions).order_by(Vehicle.capacity.asc(), Vehicle.id.asc())


def matches(vehicle: Vehicle, requirements: LoadRequirements) -> bool:
    if vehicle.capacity < requirements.weight or not is_bookable(vehicle):
        return False
    if requirements.has_dimensions:
        return (
            vehicle.length >= requirements.length
            and vehicle.width >= requirements.width
            and vehicle.height >= requirements.height
        )
    return True
