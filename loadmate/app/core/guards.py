"""
Security guards for role-based and ownership-based access control.

Role gates are FastAPI dependencies that answer 403. Ownership questions all
go through one capability check, ``can(actor, action, resource)``, which
``OwnershipGuard.enforce`` turns into a 401 error.
"""

import enum
from dataclasses import dataclass
from typing import List, Optional
from fastapi import Depends, HTTPException, status
from loadmate.app.models.enums import UserRole
from loadmate.app.core.dependencies import get_current_user
from loadmate.app.core.exceptions import NotAuthorizedError


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/owner/vehicles")
        async def list_vehicles(current_user: dict = Depends(require_role([UserRole.OWNER]))):
            ...

    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates user role

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )

        # Convert string role to UserRole enum
        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """
    Dependency for admin-only endpoints.

    Args:
        current_user: Authenticated user from JWT

    Returns:
        User payload if admin, raises 403 otherwise
    """
    if current_user.get("role") != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized as admin"
        )

    return current_user


def require_owner(current_user: dict = Depends(get_current_user)) -> dict:
    """
    Dependency for vehicle-owner-only endpoints.

    Returns:
        User payload if owner, raises 403 otherwise
    """
    if current_user.get("role") != UserRole.OWNER.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized as vehicle owner"
        )

    return current_user


class Action(str, enum.Enum):
    """Ownership-sensitive operations."""
    VIEW_BOOKING = "view_booking"
    CANCEL_BOOKING = "cancel_booking"
    UPDATE_BOOKING_STATUS = "update_booking_status"
    DECIDE_BOOKING = "decide_booking"
    MANAGE_VEHICLE = "manage_vehicle"


@dataclass(frozen=True)
class Resource:
    """
    Who a booking or vehicle belongs to.

    requester_id: the account that created the booking (None for vehicles)
    owner_id: the owner of the vehicle involved (None for system vehicles)
    """
    requester_id: Optional[int] = None
    owner_id: Optional[int] = None

    @classmethod
    def for_vehicle(cls, vehicle) -> "Resource":
        return cls(owner_id=vehicle.owner_id)

    @classmethod
    def for_booking(cls, booking, vehicle=None) -> "Resource":
        return cls(
            requester_id=booking.user_id,
            owner_id=vehicle.owner_id if vehicle is not None else None,
        )


def can(actor: dict, action: Action, resource: Resource) -> bool:
    """
    Capability check applied by every ownership-sensitive endpoint.

    | action                 | admin | vehicle owner | requester |
    |------------------------|-------|---------------|-----------|
    | VIEW_BOOKING           | yes   | yes           | yes       |
    | CANCEL_BOOKING         | no    | no            | yes       |
    | UPDATE_BOOKING_STATUS  | yes   | yes           | yes       |
    | DECIDE_BOOKING         | no    | yes           | no        |
    | MANAGE_VEHICLE         | yes   | yes           | n/a       |

    Which statuses each of them may actually set is decided by the booking
    lifecycle, not here.
    """
    user_id = actor.get("user_id")
    is_admin = actor.get("role") == UserRole.ADMIN.value
    is_requester = user_id is not None and resource.requester_id == user_id
    is_owner = user_id is not None and resource.owner_id == user_id

    if action == Action.VIEW_BOOKING:
        return is_admin or is_requester or is_owner
    if action == Action.CANCEL_BOOKING:
        return is_requester
    if action == Action.UPDATE_BOOKING_STATUS:
        return is_admin or is_owner or is_requester
    if action == Action.DECIDE_BOOKING:
        return is_owner
    if action == Action.MANAGE_VEHICLE:
        return is_admin or is_owner
    return False


class OwnershipGuard:
    """
    Raises when ``can`` says no.

    Usage:
        ownership_guard = OwnershipGuard()

        @router.put("/bookings/{booking_id}/approve")
        async def approve(...):
            booking, vehicle = await load_booking_with_vehicle(db, booking_id)
            ownership_guard.enforce(current_user, Action.DECIDE_BOOKING,
                                    Resource.for_booking(booking, vehicle),
                                    "approve this booking")
    """

    def enforce(
        self,
        current_user: dict,
        action: Action,
        resource: Resource,
        verb_phrase: str = "access this resource"
    ):
        """
        Raises:
            NotAuthorizedError (401) if the capability check fails
        """
        if not can(current_user, action, resource):
            raise NotAuthorizedError(
                message=f"Not authorized to {verb_phrase}",
                details={"action": action.value}
            )
