"""
Media Pydantic schemas.
"""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from loadmate.app.schemas.vehicle import GalleryImage


class ImageUploadResponse(BaseModel):
    """Result of an upload plus the vehicle's images afterwards."""
    url: str
    public_id: str
    image_type: str
    vehicle_id: int
    image: Optional[str] = None
    gallery: List[GalleryImage] = []


class VehicleImagesResponse(BaseModel):
    vehicle_id: int
    image: Optional[str] = None
    gallery: List[GalleryImage] = []


class OptimizedImageResponse(BaseModel):
    public_id: str
    url: str
    transformations: Dict[str, Any]
