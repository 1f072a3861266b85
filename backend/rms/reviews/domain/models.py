"""Domain models for properties, reviews and the denormalized top-5 cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping
from uuid import UUID


class ReviewStatus(str, Enum):
    """Moderation state of a review. The only transition is pending -> published."""

    PENDING = "pending"
    PUBLISHED = "published"


@dataclass(slots=True)
class ReviewSubmission:
    """Validated intake payload for the moderation pipeline."""

    property_id: UUID
    user_name: str
    overall_rating: int
    body: str
    structured: Mapping[str, int] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ReviewSnapshot:
    """Copy of a published review as stored inside a property's cache."""

    id: UUID
    user_name: str
    overall_rating: int
    structured: Mapping[str, int]
    body: str
    created_at: datetime

    def to_record(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "user_name": self.user_name,
            "overall_rating": self.overall_rating,
            "structured": dict(self.structured),
            "body": self.body,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ReviewSnapshot":
        created_at = record["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            id=UUID(str(record["id"])),
            user_name=str(record["user_name"]),
            overall_rating=int(record["overall_rating"]),
            structured=dict(record.get("structured") or {}),
            body=str(record["body"]),
            created_at=created_at,
        )


@dataclass(slots=True)
class Review:
    id: UUID
    property_id: UUID
    user_name: str
    overall_rating: int
    structured: Mapping[str, int]
    body: str
    status: ReviewStatus
    created_at: datetime

    @property
    def is_published(self) -> bool:
        return self.status is ReviewStatus.PUBLISHED

    def snapshot(self) -> ReviewSnapshot:
        return ReviewSnapshot(
            id=self.id,
            user_name=self.user_name,
            overall_rating=self.overall_rating,
            structured=dict(self.structured),
            body=self.body,
            created_at=self.created_at,
        )


@dataclass(slots=True)
class Property:
    id: UUID
    name: str
    top_5_reviews: list[ReviewSnapshot]
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True)
class SubmissionResult:
    status: ReviewStatus
    review: Review


@dataclass(slots=True)
class PropertyTop5:
    """Read model returned by the publish workflow and the top-5 lookup."""

    property_id: UUID
    top_5_reviews: list[ReviewSnapshot]
    name: str | None = None
