"""
Audit logging service for security events, admin actions and booking decisions.

Provides one place to append to the audit trail and to read it back.
"""

from typing import Optional, Dict, Any, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, func
from loadmate.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    # Accounts
    USER_REGISTERED = "USER_REGISTERED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    GOOGLE_LOGIN = "GOOGLE_LOGIN"
    TOKEN_REVOKED = "TOKEN_REVOKED"
    OWNER_REGISTERED = "OWNER_REGISTERED"
    ROLE_CHANGED = "ROLE_CHANGED"
    USER_DELETED = "USER_DELETED"

    # Fleet
    VEHICLE_CREATED = "VEHICLE_CREATED"
    VEHICLE_UPDATED = "VEHICLE_UPDATED"
    VEHICLE_DELETED = "VEHICLE_DELETED"
    VEHICLE_APPROVAL_CHANGED = "VEHICLE_APPROVAL_CHANGED"
    IMAGE_UPLOADED = "IMAGE_UPLOADED"
    IMAGE_DELETED = "IMAGE_DELETED"

    # Bookings
    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_APPROVED = "BOOKING_APPROVED"
    BOOKING_REJECTED = "BOOKING_REJECTED"
    BOOKING_STATUS_CHANGED = "BOOKING_STATUS_CHANGED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    EARNINGS_CREDITED = "EARNINGS_CREDITED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_email: Optional[str] = None,
    target_user_id: Optional[int] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Log a security, admin or booking event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_email: Email of actor
        target_user_id: ID of user being acted upon (if applicable)
        resource_type: "booking" or "vehicle" when a record is involved
        resource_id: ID of that record
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        target_user_id=target_user_id,
        resource_type=resource_type,
        resource_id=resource_id,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def log_auth_event(
    db: AsyncSession,
    action: str,
    user_id: Optional[int],
    email: Optional[str],
    ip_address: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Log an authentication event (login success/failure, logout).
    """
    return await log_event(
        db=db,
        action=action,
        actor_id=user_id,
        actor_email=email,
        ip_address=ip_address,
        metadata=metadata
    )


async def get_audit_trail(
    db: AsyncSession,
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    page: int = 1,
    page_size: int = 50
) -> Tuple[List[AuditLog], int]:
    """
    Retrieve a page of the audit trail, newest first.

    Returns:
        (entries, total matching entries)
    """
    conditions = []
    if action:
        conditions.append(AuditLog.action == action)
    if resource_type:
        conditions.append(AuditLog.resource_type == resource_type)

    total_result = await db.execute(select(func.count(AuditLog.id)).where(*conditions))
    total = total_result.scalar()

    query = (
        select(AuditLog)
        .where(*conditions)
        .order_by(desc(AuditLog.timestamp), desc(AuditLog.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total
