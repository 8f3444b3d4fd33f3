"""
Booking lifecycle state machine.

A booking's overall status and its owner-approval sub-status are handled as
one immutable ``BookingState`` value. Endpoints never assign either field
directly; they call a transition function and persist the state it returns.

Overall status:   PENDING -> CONFIRMED -> IN_TRANSIT -> DELIVERED
                  any status -> CANCELLED
Owner approval:   PENDING -> APPROVED | REJECTED   (one-shot)

Rules
-----
* ``approve`` and ``reject`` are the only way out of approval PENDING.
  Approving confirms the booking; rejecting cancels it.
* CONFIRMED, IN_TRANSIT and DELIVERED require an approved booking.
* A rejected booking stays cancelled.
* Re-applying the current status is a no-op.

Delivered and cancelled bookings are not locked: whoever may update a
booking's status (see ``core.guards``) may set any value the rules above
allow. Who acted only matters for crediting a delivery.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import FrozenSet, Optional

from loadmate.app.core.exceptions import StateConflictError
from loadmate.app.models.booking_enums import BookingStatus, OwnerApprovalStatus

APPROVAL_REQUIRED: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.CONFIRMED,
    BookingStatus.IN_TRANSIT,
    BookingStatus.DELIVERED,
})

DEFAULT_REJECTION_REASON = "No reason provided"


@dataclass(frozen=True)
class BookingState:
    status: BookingStatus = BookingStatus.PENDING
    approval: OwnerApprovalStatus = OwnerApprovalStatus.PENDING
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @classmethod
    def of(cls, booking) -> "BookingState":
        """Read the state off a Booking row."""
        return cls(
            status=booking.status,
            approval=booking.approval_status,
            approved_at=booking.approved_at,
            rejected_at=booking.rejected_at,
            rejection_reason=booking.rejection_reason,
        )

    def apply_to(self, booking) -> None:
        """Write the state back onto a Booking row."""
        booking.status = self.status
        booking.approval_status = self.approval
        booking.approved_at = self.approved_at
        booking.rejected_at = self.rejected_at
        booking.rejection_reason = self.rejection_reason


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_undecided(state: BookingState) -> None:
    if state.approval != OwnerApprovalStatus.PENDING:
        raise StateConflictError(
            "Booking has already been processed",
            details={"approval_status": state.approval.value},
        )


def approve(state: BookingState, at: Optional[datetime] = None) -> BookingState:
    """Owner accepts the booking; it becomes CONFIRMED."""
    _ensure_undecided(state)
    return replace(
        state,
        status=BookingStatus.CONFIRMED,
        approval=OwnerApprovalStatus.APPROVED,
        approved_at=at or _now(),
    )


def reject(state: BookingState, reason: Optional[str] = None, at: Optional[datetime] = None) -> BookingState:
    """Owner declines the booking; it becomes CANCELLED."""
    _ensure_undecided(state)
    return replace(
        state,
        status=BookingStatus.CANCELLED,
        approval=OwnerApprovalStatus.REJECTED,
        rejected_at=at or _now(),
        rejection_reason=reason or DEFAULT_REJECTION_REASON,
    )


def change_status(state: BookingState, target: BookingStatus) -> BookingState:
    """
    Set the overall status.

    Raises:
        StateConflictError: if the booking was rejected, or ``target`` needs
            an approval the booking does not have
    """
    if target == state.status:
        return state

    if state.approval == OwnerApprovalStatus.REJECTED:
        raise StateConflictError("A rejected booking cannot be reopened")

    if target in APPROVAL_REQUIRED and state.approval != OwnerApprovalStatus.APPROVED:
        raise StateConflictError(
            "Booking must be approved by the vehicle owner first",
            details={"approval_status": state.approval.value, "requested_status": target.value},
        )

    return replace(state, status=target)


def cancel(state: BookingState) -> BookingState:
    """Requester cancels their own booking (soft; the row is kept)."""
    return change_status(state, BookingStatus.CANCELLED)


def enters_delivered(before: BookingState, after: BookingState) -> bool:
    return after.status == BookingStatus.DELIVERED and before.status != BookingStatus.DELIVERED
