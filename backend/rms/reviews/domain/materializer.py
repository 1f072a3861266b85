"""Recomputes the denormalized top-N recent reviews cache on a property."""

from __future__ import annotations

import logging
from time import perf_counter
from uuid import UUID

from rms.obs import metrics as obs_metrics
from rms.reviews.domain.models import ReviewSnapshot
from rms.reviews.domain.repository import ReviewTransaction

logger = logging.getLogger(__name__)


class Top5Materializer:
    """Overwrites ``top_5_reviews`` from the current published set.

    The cache is rebuilt by re-querying rather than merged incrementally, so the
    result never depends on the previous cache value and repeated calls are
    idempotent. Callers must invoke it inside the transaction that changed the
    property's published reviews.
    """

    def __init__(self, limit: int = 5) -> None:
        if limit < 1:
            raise ValueError("limit must be positive")
        self.limit = limit

    async def refresh(
        self,
        tx: ReviewTransaction,
        property_id: UUID,
        *,
        trigger: str = "manual",
    ) -> list[ReviewSnapshot]:
        start = perf_counter()
        reviews = await tx.list_recent_published(property_id, self.limit)
        snapshots = [review.snapshot() for review in reviews[: self.limit]]
        await tx.replace_top_reviews(property_id, snapshots)
        obs_metrics.observe_materialization(trigger, perf_counter() - start)
        logger.info(
            "top5_materialized",
            extra={"property_id": str(property_id), "count": len(snapshots), "trigger": trigger},
        )
        return snapshots
