"""Read endpoints for the per-property top-5 cache."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from rms.reviews.api._errors import to_http_error
from rms.reviews.domain.container import get_review_service
from rms.reviews.domain.exceptions import ReviewError
from rms.reviews.domain.service import ReviewService
from rms.reviews.schemas import PropertyTop5Response

router = APIRouter(prefix="/api/properties", tags=["properties"])


@router.get("/{property_id}/top5", response_model=PropertyTop5Response)
async def get_top5_endpoint(
	property_id: UUID,
	service: ReviewService = Depends(get_review_service),
) -> PropertyTop5Response:
	try:
		result = await service.get_top5(property_id)
	except ReviewError as exc:
		raise to_http_error(exc) from exc
	return PropertyTop5Response.from_domain(result)
