"""Reviews API routers."""

from fastapi import APIRouter

from . import properties, reviews

router = APIRouter()
router.include_router(reviews.router)
router.include_router(properties.router)

__all__ = ["router"]
