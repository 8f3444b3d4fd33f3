"""
Vehicle catalogue API endpoints.

Public browsing, load-based suggestions with fare quotes, and admin creation
of system vehicles. Owner fleet management lives in ``owner.py``.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Optional
from loadmate.app.db.session import get_db
from loadmate.app.models.vehicle import Vehicle
from loadmate.app.models.enums import UserRole, VehicleType
from loadmate.app.schemas.vehicle import (
    VehicleCreate, VehicleResponse, VehicleListResponse,
    SuggestionRequest, SuggestionResponse, VehicleSuggestion,
    VehicleWithOwner, VehicleWithOwnerList, FareQuoteResponse
)
from loadmate.app.core.dependencies import get_optional_user
from loadmate.app.core.guards import require_admin
from loadmate.app.domain.fleet.suggestion import LoadRequirements, bookable_clause, suggestion_query
from loadmate.app.domain.pricing.fare_calculator import quote_for_vehicle, encode_quote
from loadmate.app.services.booking_service import get_vehicle_or_404
from loadmate.app.services.fleet_service import ensure_unique_registration, owners_by_id, with_owner
from loadmate.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: Optional[dict] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List vehicles, smallest capacity first.

    Admins see every vehicle; everyone else (including anonymous callers)
    only sees vehicles that can currently be booked.
    """
    is_admin = current_user is not None and current_user.get("role") == UserRole.ADMIN.value
    conditions = [] if is_admin else [bookable_clause()]

    total_result = await db.execute(select(func.count(Vehicle.id)).where(*conditions))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = select(Vehicle).where(*conditions).order_by(
        Vehicle.capacity.asc(), Vehicle.id.asc()
    ).offset(offset).limit(page_size)
    result = await db.execute(query)

    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size
    )


@router.post("/suggest", response_model=SuggestionResponse)
async def suggest_vehicles(
    requirements: SuggestionRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Suggest vehicles able to carry a load, smallest adequate vehicle first.

    Each suggestion carries a fare quote for the requested distance (50 km
    when omitted) and a signed ``quote_token`` to pass to booking creation.
    """
    load = LoadRequirements(
        weight=requirements.weight,
        length=requirements.length,
        width=requirements.width,
        height=requirements.height,
    )
    result = await db.execute(suggestion_query(load))
    vehicles = result.scalars().all()

    if not vehicles:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No suitable vehicles found for your requirements"
        )

    owners = await owners_by_id(db, vehicles)
    suggestions = []
    for vehicle in vehicles:
        quote = quote_for_vehicle(vehicle, requirements.distance)
        suggestions.append(VehicleSuggestion(
            **with_owner(vehicle, owners.get(vehicle.owner_id)),
            quote=FareQuoteResponse(
                distance=quote.fare.distance,
                base_fare=quote.fare.base_fare,
                loading_charges=quote.fare.loading_charges,
                total_fare=quote.fare.total_fare
            ),
            quote_token=encode_quote(quote)
        ))

    return SuggestionResponse(suggestions=suggestions, total=len(suggestions))


@router.get("/type/{vehicle_type}", response_model=VehicleWithOwnerList)
async def list_vehicles_by_type(
    vehicle_type: VehicleType = Path(..., description="Vehicle class, e.g. 'Tata Ace'"),
    db: AsyncSession = Depends(get_db)
):
    """Bookable, owner-listed vehicles of one type with their owners."""
    result = await db.execute(
        select(Vehicle).where(
            Vehicle.vehicle_type == vehicle_type,
            Vehicle.owner_id.is_not(None),
            bookable_clause()
        ).order_by(Vehicle.capacity.asc(), Vehicle.id.asc())
    )
    vehicles = result.scalars().all()

    if not vehicles:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {vehicle_type.value} vehicles available"
        )

    owners = await owners_by_id(db, vehicles)
    return VehicleWithOwnerList(
        vehicles=[VehicleWithOwner(**with_owner(v, owners.get(v.owner_id))) for v in vehicles],
        total=len(vehicles)
    )


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get a single vehicle."""
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    return VehicleResponse.model_validate(vehicle)


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_system_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a system vehicle (Admin only).

    System vehicles have no owner and no approval status; they are bookable
    as long as they are available.
    """
    await ensure_unique_registration(db, vehicle_data.registration_number)

    vehicle = Vehicle(
        **vehicle_data.model_dump(),
        owner_id=None,
        approval_status=None,
        gallery=[]
    )
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)

    await log_event(
        db=db,
        action=AuditAction.VEHICLE_CREATED,
        actor_id=current_user["user_id"],
        actor_email=current_user["sub"],
        resource_type="vehicle",
        resource_id=vehicle.id,
        metadata={"vehicle_type": vehicle.vehicle_type.value, "system": True}
    )

    return VehicleResponse.model_validate(vehicle)
