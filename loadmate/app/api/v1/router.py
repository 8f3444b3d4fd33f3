"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from loadmate.app.api.v1.endpoints import auth, vehicles, bookings, owner, admin, images

router = APIRouter()

# Authentication and Google sign-in
router.include_router(auth.router)

# Vehicle catalogue and suggestions
router.include_router(vehicles.router)

# Customer bookings and owner decisions
router.include_router(bookings.router)

# Vehicle owner dashboard and fleet
router.include_router(owner.router)

# Admin moderation
router.include_router(admin.router)

# Vehicle images
router.include_router(images.router)
