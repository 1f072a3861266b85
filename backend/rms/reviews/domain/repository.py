"""Storage contracts for reviews plus an in-memory reference store."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import AsyncContextManager, AsyncIterator, Callable, Mapping, Protocol, Sequence
from uuid import UUID, uuid4

from rms.reviews.domain.exceptions import TransactionFailure
from rms.reviews.domain.models import Property, Review, ReviewSnapshot, ReviewStatus, ReviewSubmission


class ReviewReader(Protocol):
    """Queries the fraud gate may run, inside or outside a transaction."""

    async def count_recent_by_author(self, user_name: str, window: timedelta) -> int:
        ...


class ReviewTransaction(ReviewReader, Protocol):
    """Operations bound to one open transaction.

    Everything performed through a transaction commits or rolls back together.
    The materializer only accepts this type, never the store itself.
    """

    async def insert_review(self, submission: ReviewSubmission, status: ReviewStatus) -> Review:
        ...

    async def mark_published(self, review_id: UUID) -> UUID | None:
        """Set status to published and return the owning property id, or None if no row matched."""
        ...

    async def list_recent_published(self, property_id: UUID, limit: int) -> Sequence[Review]:
        ...

    async def replace_top_reviews(self, property_id: UUID, snapshots: Sequence[ReviewSnapshot]) -> None:
        ...

    async def get_property(self, property_id: UUID) -> Property | None:
        ...


class ReviewStore(ReviewReader, Protocol):
    """Entry point to review storage; hands out scoped transactions."""

    def transaction(self) -> AsyncContextManager[ReviewTransaction]:
        ...

    async def property_exists(self, property_id: UUID) -> bool:
        ...

    async def get_property(self, property_id: UUID) -> Property | None:
        ...


def _newest_first(review: Review) -> tuple[datetime, str]:
    return (review.created_at, str(review.id))


class InMemoryReviewTransaction(ReviewTransaction):
    """Works on private copies of the store's tables; the store swaps them in on commit."""

    def __init__(
        self,
        store: "InMemoryReviewStore",
        properties: dict[UUID, Property],
        reviews: dict[UUID, Review],
    ) -> None:
        self._store = store
        self.properties = properties
        self.reviews = reviews

    async def count_recent_by_author(self, user_name: str, window: timedelta) -> int:
        return self._store._count_recent(self.reviews.values(), user_name, window)

    async def insert_review(self, submission: ReviewSubmission, status: ReviewStatus) -> Review:
        if submission.property_id not in self.properties:
            # Mirrors the foreign key violation the Postgres store reports.
            raise TransactionFailure("review_transaction_failed")
        review = Review(
            id=uuid4(),
            property_id=submission.property_id,
            user_name=submission.user_name,
            overall_rating=submission.overall_rating,
            structured=dict(submission.structured),
            body=submission.body,
            status=status,
            created_at=self._store._next_created_at(),
        )
        self.reviews[review.id] = review
        return replace(review)

    async def mark_published(self, review_id: UUID) -> UUID | None:
        review = self.reviews.get(review_id)
        if review is None:
            return None
        review.status = ReviewStatus.PUBLISHED
        return review.property_id

    async def list_recent_published(self, property_id: UUID, limit: int) -> Sequence[Review]:
        published = [
            review
            for review in self.reviews.values()
            if review.property_id == property_id and review.is_published
        ]
        published.sort(key=_newest_first, reverse=True)
        return [replace(review) for review in published[:limit]]

    async def replace_top_reviews(self, property_id: UUID, snapshots: Sequence[ReviewSnapshot]) -> None:
        prop = self.properties.get(property_id)
        if prop is None:
            return
        prop.top_5_reviews = list(snapshots)
        prop.updated_at = self._store._clock()

    async def get_property(self, property_id: UUID) -> Property | None:
        prop = self.properties.get(property_id)
        return _copy_property(prop) if prop else None


def _copy_property(prop: Property) -> Property:
    return replace(prop, top_5_reviews=list(prop.top_5_reviews))


class InMemoryReviewStore(ReviewStore):
    """Reference store used in tests and developer environments.

    Transactions are serialized with a lock, which is stricter than the
    read-committed isolation the Postgres store relies on.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self.properties: dict[UUID, Property] = {}
        self.reviews: dict[UUID, Review] = {}
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._last_created_at: datetime | None = None
        self._lock = asyncio.Lock()

    def add_property(self, name: str, *, property_id: UUID | None = None) -> Property:
        now = self._clock()
        prop = Property(
            id=property_id or uuid4(),
            name=name,
            top_5_reviews=[],
            created_at=now,
            updated_at=now,
        )
        self.properties[prop.id] = prop
        return _copy_property(prop)

    def add_review(
        self,
        property_id: UUID,
        *,
        user_name: str,
        body: str,
        status: ReviewStatus = ReviewStatus.PENDING,
        overall_rating: int = 5,
        structured: Mapping[str, int] | None = None,
        created_at: datetime | None = None,
    ) -> Review:
        """Insert a row directly, bypassing moderation. The top-5 cache is left untouched."""
        review = Review(
            id=uuid4(),
            property_id=property_id,
            user_name=user_name,
            overall_rating=overall_rating,
            structured=dict(structured or {}),
            body=body,
            status=status,
            created_at=created_at or self._next_created_at(),
        )
        self.reviews[review.id] = review
        return replace(review)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[ReviewTransaction]:
        async with self._lock:
            tx = InMemoryReviewTransaction(
                self,
                properties={key: _copy_property(value) for key, value in self.properties.items()},
                reviews={key: replace(value) for key, value in self.reviews.items()},
            )
            yield tx
            self.properties = tx.properties
            self.reviews = tx.reviews

    async def property_exists(self, property_id: UUID) -> bool:
        return property_id in self.properties

    async def get_property(self, property_id: UUID) -> Property | None:
        prop = self.properties.get(property_id)
        return _copy_property(prop) if prop else None

    async def count_recent_by_author(self, user_name: str, window: timedelta) -> int:
        return self._count_recent(self.reviews.values(), user_name, window)

    def _count_recent(self, reviews, user_name: str, window: timedelta) -> int:
        since = self._clock() - window
        return sum(1 for review in reviews if review.user_name == user_name and review.created_at >= since)

    def _next_created_at(self) -> datetime:
        # Keep creation times strictly increasing so "most recent" is never ambiguous.
        now = self._clock()
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(microseconds=1)
        self._last_created_at = now
        return now
