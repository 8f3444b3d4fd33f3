"""
Vehicle image API endpoints.

Upload and delete vehicle images and build transformed delivery URLs.
"""

import uuid
from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from loadmate.app.db.session import get_db
from loadmate.app.schemas.media import ImageUploadResponse, VehicleImagesResponse, OptimizedImageResponse
from loadmate.app.core.dependencies import get_current_user
from loadmate.app.core.guards import OwnershipGuard, Action, Resource
from loadmate.app.services.audit import log_event, AuditAction
from loadmate.app.services.booking_service import get_vehicle_or_404
from loadmate.app.services.media_storage import (
    MediaStorage, get_media_storage, validate_image, delete_quietly, optimization_options
)

router = APIRouter(prefix="/images", tags=["Images"])
ownership_guard = OwnershipGuard()

IMAGE_TYPES = ("primary", "gallery")


def _check_image_type(image_type: str) -> None:
    if image_type not in IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="image_type must be 'primary' or 'gallery'"
        )


@router.post("/vehicles/{vehicle_id}/upload", response_model=ImageUploadResponse)
async def upload_vehicle_image(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    image: UploadFile = File(..., description="JPG, PNG or WEBP image, max 5 MB"),
    image_type: str = Form("primary"),
    current_user: dict = Depends(get_current_user),
    storage: MediaStorage = Depends(get_media_storage),
    db: AsyncSession = Depends(get_db)
):
    """
    Upload a vehicle image (the vehicle's owner or an admin).

    A primary upload replaces the previous primary image; removing the old
    file is best-effort. Every upload also becomes the vehicle's main
    ``image`` URL.
    """
    _check_image_type(image_type)

    vehicle = await get_vehicle_or_404(db, vehicle_id)
    ownership_guard.enforce(current_user, Action.MANAGE_VEHICLE, Resource.for_vehicle(vehicle), "update this vehicle")

    content = await image.read()
    extension = validate_image(image.filename, image.content_type, len(content))
    stored = await storage.save(content, extension)

    if image_type == "primary":
        await delete_quietly(storage, vehicle.image_public_id)
        vehicle.image_public_id = stored.public_id
    else:
        vehicle.gallery = [
            *(vehicle.gallery or []),
            {"id": uuid.uuid4().hex, "url": stored.url, "public_id": stored.public_id},
        ]

    vehicle.image = stored.url
    await db.commit()
    await db.refresh(vehicle)

    await log_event(
        db=db,
        action=AuditAction.IMAGE_UPLOADED,
        actor_id=current_user["user_id"],
        actor_email=current_user["sub"],
        resource_type="vehicle",
        resource_id=vehicle.id,
        metadata={"image_type": image_type, "public_id": stored.public_id}
    )

    return ImageUploadResponse(
        url=stored.url,
        public_id=stored.public_id,
        image_type=image_type,
        vehicle_id=vehicle.id,
        image=vehicle.image,
        gallery=vehicle.gallery or []
    )


@router.delete("/vehicles/{vehicle_id}/images/{image_id}", response_model=VehicleImagesResponse)
async def delete_vehicle_image(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    image_id: str = Path(..., description="Gallery image id (ignored for the primary image)"),
    image_type: str = Query("gallery"),
    current_user: dict = Depends(get_current_user),
    storage: MediaStorage = Depends(get_media_storage),
    db: AsyncSession = Depends(get_db)
):
    """
    Remove a gallery image or the primary image (the vehicle's owner or an admin).
    """
    _check_image_type(image_type)

    vehicle = await get_vehicle_or_404(db, vehicle_id)
    ownership_guard.enforce(current_user, Action.MANAGE_VEHICLE, Resource.for_vehicle(vehicle), "update this vehicle")

    public_id: Optional[str] = None
    if image_type == "primary":
        public_id = vehicle.image_public_id
        vehicle.image = None
        vehicle.image_public_id = None
    else:
        gallery = list(vehicle.gallery or [])
        match = next((item for item in gallery if item.get("id") == image_id), None)
        if match is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Image not found"
            )
        public_id = match.get("public_id")
        vehicle.gallery = [item for item in gallery if item.get("id") != image_id]
        if vehicle.image == match.get("url"):
            vehicle.image = vehicle.gallery[-1]["url"] if vehicle.gallery else None

    await db.commit()
    await db.refresh(vehicle)
    await delete_quietly(storage, public_id)

    await log_event(
        db=db,
        action=AuditAction.IMAGE_DELETED,
        actor_id=current_user["user_id"],
        actor_email=current_user["sub"],
        resource_type="vehicle",
        resource_id=vehicle.id,
        metadata={"image_type": image_type, "public_id": public_id}
    )

    return VehicleImagesResponse(
        vehicle_id=vehicle.id,
        image=vehicle.image,
        gallery=vehicle.gallery or []
    )


@router.get("/{public_id:path}/optimize", response_model=OptimizedImageResponse)
async def get_optimized_image_url(
    public_id: str,
    width: Optional[int] = Query(None, gt=0),
    height: Optional[int] = Query(None, gt=0),
    crop: str = Query("fill"),
    quality: str = Query("auto"),
    storage: MediaStorage = Depends(get_media_storage)
):
    """Delivery URL for a stored image with size and quality transformations."""
    options = optimization_options(width, height, crop, quality)
    return OptimizedImageResponse(
        public_id=public_id,
        url=storage.url_for(public_id, **options),
        transformations=options
    )
