"""Auto-publish heuristic applied to new reviews."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from rms.reviews.domain.repository import ReviewReader
from rms.settings import Settings


@dataclass(slots=True)
class FraudGate:
    """Decides whether a submission is trustworthy enough to publish without moderation.

    Bodies shorter than ``min_body_length`` are never trusted. Otherwise the
    author's submissions of any status inside ``window`` are counted, and the
    review is trusted while that count is at most ``max_recent_submissions``.
    """

    min_body_length: int = 10
    max_recent_submissions: int = 3
    window: timedelta = field(default_factory=lambda: timedelta(hours=24))

    @classmethod
    def from_settings(cls, settings: Settings) -> "FraudGate":
        return cls(
            min_body_length=settings.review_min_body_length,
            max_recent_submissions=settings.review_fraud_max_recent,
            window=timedelta(hours=settings.review_fraud_window_hours),
        )

    async def is_trustworthy(self, reader: ReviewReader, user_name: str, body: str) -> bool:
        if not body or len(body) < self.min_body_length:
            return False
        recent = await reader.count_recent_by_author(user_name, self.window)
        return recent <= self.max_recent_submissions
