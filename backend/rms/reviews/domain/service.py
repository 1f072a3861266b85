"""Moderation pipeline and publish workflow for property reviews."""

from __future__ import annotations

import logging
from uuid import UUID

from rms.obs import metrics as obs_metrics
from rms.reviews.domain.exceptions import NotFoundError, TransactionFailure, ValidationError
from rms.reviews.domain.fraud import FraudGate
from rms.reviews.domain.materializer import Top5Materializer
from rms.reviews.domain.models import PropertyTop5, ReviewStatus, ReviewSubmission, SubmissionResult
from rms.reviews.domain.repository import ReviewStore

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def _validate(submission: ReviewSubmission) -> None:
    rating = submission.overall_rating
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("invalid_rating")
    if not submission.user_name or not submission.user_name.strip():
        raise ValidationError("invalid_user_name")
    if not submission.body:
        raise ValidationError("invalid_body")
    for key, value in submission.structured.items():
        if not isinstance(key, str) or isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError("invalid_structured_ratings")


class ReviewService:
    """Coordinates the fraud gate, the review store and the top-5 materializer."""

    def __init__(
        self,
        store: ReviewStore,
        *,
        gate: FraudGate | None = None,
        materializer: Top5Materializer | None = None,
    ) -> None:
        self.store = store
        self.gate = gate or FraudGate()
        self.materializer = materializer or Top5Materializer()

    async def submit(self, submission: ReviewSubmission) -> SubmissionResult:
        """Gate, persist and (when auto-published) materialize a new review atomically."""
        _validate(submission)
        try:
            if not await self.store.property_exists(submission.property_id):
                raise ValidationError("property_not_found")
            trusted = await self.gate.is_trustworthy(self.store, submission.user_name, submission.body)
            status = ReviewStatus.PUBLISHED if trusted else ReviewStatus.PENDING
            async with self.store.transaction() as tx:
                review = await tx.insert_review(submission, status)
                if status is ReviewStatus.PUBLISHED:
                    await self.materializer.refresh(tx, submission.property_id, trigger="submit")
        except TransactionFailure:
            obs_metrics.inc_transaction_failure("submit")
            logger.warning(
                "review_transaction_failed",
                extra={"operation": "submit", "property_id": str(submission.property_id)},
                exc_info=True,
            )
            raise
        obs_metrics.inc_review_submitted(status.value)
        logger.info(
            "review_submitted" if status is ReviewStatus.PUBLISHED else "review_held",
            extra={"review_id": str(review.id), "property_id": str(review.property_id), "status": status.value},
        )
        return SubmissionResult(status=status, review=review)

    async def publish(self, review_id: UUID) -> PropertyTop5:
        """Flip a review to published and refresh its property's cache in one transaction."""
        try:
            async with self.store.transaction() as tx:
                property_id = await tx.mark_published(review_id)
                if property_id is None:
                    raise NotFoundError("review_not_found")
                await self.materializer.refresh(tx, property_id, trigger="publish")
                prop = await tx.get_property(property_id)
                if prop is None:
                    raise NotFoundError("property_not_found")
        except TransactionFailure:
            obs_metrics.inc_transaction_failure("publish")
            logger.warning(
                "review_transaction_failed",
                extra={"operation": "publish", "review_id": str(review_id)},
                exc_info=True,
            )
            raise
        obs_metrics.inc_review_published()
        logger.info("review_published", extra={"review_id": str(review_id), "property_id": str(prop.id)})
        return PropertyTop5(property_id=prop.id, top_5_reviews=list(prop.top_5_reviews))

    async def get_top5(self, property_id: UUID) -> PropertyTop5:
        prop = await self.store.get_property(property_id)
        if prop is None:
            raise NotFoundError("property_not_found")
        return PropertyTop5(property_id=prop.id, name=prop.name, top_5_reviews=list(prop.top_5_reviews))
