"""Pydantic schemas for the reviews API."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from rms.reviews.domain.models import PropertyTop5, Review, ReviewSnapshot, ReviewSubmission


class ReviewCreateRequest(BaseModel):
	property_id: UUID
	user_name: str = Field(..., min_length=1, max_length=200)
	overall_rating: int = Field(..., ge=1, le=5)
	structured: Dict[str, int] = Field(default_factory=dict)
	body: str = Field(..., min_length=1)

	def to_domain(self) -> ReviewSubmission:
		return ReviewSubmission(
			property_id=self.property_id,
			user_name=self.user_name,
			overall_rating=self.overall_rating,
			structured=dict(self.structured),
			body=self.body,
		)


class ReviewSnapshotResponse(BaseModel):
	id: UUID
	user_name: str
	overall_rating: int
	structured: Dict[str, int]
	body: str
	created_at: datetime

	@classmethod
	def from_domain(cls, snapshot: ReviewSnapshot) -> "ReviewSnapshotResponse":
		return cls(
			id=snapshot.id,
			user_name=snapshot.user_name,
			overall_rating=snapshot.overall_rating,
			structured=dict(snapshot.structured),
			body=snapshot.body,
			created_at=snapshot.created_at,
		)


class ReviewResponse(ReviewSnapshotResponse):
	property_id: UUID
	status: Literal["pending", "published"]

	@classmethod
	def from_review(cls, review: Review) -> "ReviewResponse":
		return cls(
			id=review.id,
			property_id=review.property_id,
			user_name=review.user_name,
			overall_rating=review.overall_rating,
			structured=dict(review.structured),
			body=review.body,
			status=review.status.value,
			created_at=review.created_at,
		)


class ReviewSubmitResponse(BaseModel):
	status: Literal["pending", "published"]
	review: ReviewResponse
	message: Optional[str] = None


class PublishResponse(BaseModel):
	property_id: UUID
	top_5_reviews: List[ReviewSnapshotResponse]

	@classmethod
	def from_domain(cls, result: PropertyTop5) -> "PublishResponse":
		return cls(
			property_id=result.property_id,
			top_5_reviews=[ReviewSnapshotResponse.from_domain(item) for item in result.top_5_reviews],
		)


class PropertyTop5Response(PublishResponse):
	name: str

	@classmethod
	def from_domain(cls, result: PropertyTop5) -> "PropertyTop5Response":
		return cls(
			property_id=result.property_id,
			name=result.name or "",
			top_5_reviews=[ReviewSnapshotResponse.from_domain(item) for item in result.top_5_reviews],
		)
