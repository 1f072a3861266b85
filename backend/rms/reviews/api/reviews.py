"""Review intake and publish endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from rms.reviews.api._errors import to_http_error
from rms.reviews.domain.container import get_review_service
from rms.reviews.domain.exceptions import ReviewError
from rms.reviews.domain.models import ReviewStatus
from rms.reviews.domain.service import ReviewService
from rms.reviews.schemas import (
	PublishResponse,
	ReviewCreateRequest,
	ReviewResponse,
	ReviewSubmitResponse,
)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.post(
	"",
	response_model=ReviewSubmitResponse,
	response_model_exclude_none=True,
	status_code=status.HTTP_201_CREATED,
	responses={200: {"model": ReviewSubmitResponse, "description": "Review held for moderation"}},
)
async def submit_review_endpoint(
	payload: ReviewCreateRequest,
	response: Response,
	service: ReviewService = Depends(get_review_service),
) -> ReviewSubmitResponse:
	try:
		result = await service.submit(payload.to_domain())
	except ReviewError as exc:
		raise to_http_error(exc) from exc
	review = ReviewResponse.from_review(result.review)
	if result.status is ReviewStatus.PENDING:
		response.status_code = status.HTTP_200_OK
		return ReviewSubmitResponse(status="pending", review=review, message="held for moderation")
	return ReviewSubmitResponse(status="published", review=review)


@router.post("/{review_id}/publish", response_model=PublishResponse)
async def publish_review_endpoint(
	review_id: UUID,
	service: ReviewService = Depends(get_review_service),
) -> PublishResponse:
	try:
		result = await service.publish(review_id)
	except ReviewError as exc:
		raise to_http_error(exc) from exc
	return PublishResponse.from_domain(result)
