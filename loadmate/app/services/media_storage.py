"""
Vehicle image storage.

Images go to Cloudinary when its credentials are configured, otherwise to a
local directory served at ``/uploads``. Both backends run their blocking I/O
in Starlette's threadpool.
"""

import io
import logging
import os
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import cloudinary
import cloudinary.uploader
import cloudinary.utils
from starlette.concurrency import run_in_threadpool

from loadmate.app.core.config import settings
from loadmate.app.core.exceptions import BadRequestError

logger = logging.getLogger("loadmate.media")

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "webp"}

# Applied to every upload: fit into 800x600, automatic quality and format
UPLOAD_TRANSFORMATION = [
    {"width": 800, "height": 600, "crop": "fill", "quality": "auto"},
    {"fetch_format": "auto"},
]


@dataclass(frozen=True)
class StoredImage:
    url: str
    public_id: str


def validate_image(filename: Optional[str], content_type: Optional[str], size: int) -> str:
    """
    Check an upload before it is stored.

    Returns:
        The lower-cased file extension

    Raises:
        BadRequestError: for non-images, unsupported formats or files over the size limit
    """
    if not content_type or not content_type.startswith("image/"):
        raise BadRequestError("Only image files are allowed")

    extension = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
    if extension not in ALLOWED_EXTENSIONS:
        raise BadRequestError(
            "Unsupported image format",
            details={"allowed": sorted(ALLOWED_EXTENSIONS)}
        )

    if size == 0:
        raise BadRequestError("No image file provided")
    if size > settings.max_image_size_bytes:
        raise BadRequestError(
            "Image exceeds the maximum upload size",
            details={"max_bytes": settings.max_image_size_bytes}
        )
    return extension


def _new_public_id() -> str:
    return f"vehicle_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class MediaStorage(ABC):
    """Interface shared by the storage backends."""

    @abstractmethod
    async def save(self, content: bytes, extension: str) -> StoredImage:
        """Store an image and return where it is served from."""

    @abstractmethod
    async def delete(self, public_id: str) -> None:
        """Remove a stored image."""

    @abstractmethod
    def url_for(self, public_id: str, **transformations: Any) -> str:
        """Delivery URL for a stored image."""


class CloudinaryStorage(MediaStorage):
    """Hosted storage on Cloudinary."""

    def __init__(self):
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )

    async def save(self, content: bytes, extension: str) -> StoredImage:
        result = await run_in_threadpool(
            cloudinary.uploader.upload,
            io.BytesIO(content),
            folder=settings.cloudinary_folder,
            public_id=_new_public_id(),
            allowed_formats=sorted(ALLOWED_EXTENSIONS),
            transformation=UPLOAD_TRANSFORMATION,
        )
        return StoredImage(url=result["secure_url"], public_id=result["public_id"])

    async def delete(self, public_id: str) -> None:
        await run_in_threadpool(cloudinary.uploader.destroy, public_id)

    def url_for(self, public_id: str, **transformations: Any) -> str:
        url, _ = cloudinary.utils.cloudinary_url(public_id, secure=True, **transformations)
        return url


class LocalDiskStorage(MediaStorage):
    """Fallback storage in a local directory, served by the app's static mount."""

    def __init__(self, root: Path, base_url: str = "/uploads"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _write(self, name: str, content: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / name).write_bytes(content)

    def _remove(self, name: str) -> None:
        path = self.root / os.path.basename(name)
        if path.exists():
            path.unlink()

    async def save(self, content: bytes, extension: str) -> StoredImage:
        name = f"{_new_public_id()}.{extension}"
        await run_in_threadpool(self._write, name, content)
        return StoredImage(url=f"{self.base_url}/{name}", public_id=name)

    async def delete(self, public_id: str) -> None:
        await run_in_threadpool(self._remove, public_id)

    def url_for(self, public_id: str, **transformations: Any) -> str:
        # Local files are served as stored
        return f"{self.base_url}/{public_id}"


def get_media_storage() -> MediaStorage:
    """FastAPI dependency choosing the storage backend from configuration."""
    if settings.cloudinary_enabled:
        return CloudinaryStorage()
    return LocalDiskStorage(Path(settings.upload_dir))


async def delete_quietly(storage: MediaStorage, public_id: Optional[str]) -> bool:
    """Delete a stored image, logging instead of raising on failure."""
    if not public_id:
        return False
    try:
        await storage.delete(public_id)
    except Exception:
        logger.warning("Could not delete stored image %s", public_id, exc_info=True)
        return False
    return True


def optimization_options(
    width: Optional[int],
    height: Optional[int],
    crop: str,
    quality: str
) -> Dict[str, Any]:
    options: Dict[str, Any] = {"crop": crop, "quality": quality, "fetch_format": "auto"}
    if width:
        options["width"] = width
    if height:
        options["height"] = height
    return options
