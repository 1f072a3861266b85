"""Lightweight service container shared by review modules."""

from __future__ import annotations

from typing import Optional

import asyncpg

from rms.reviews.domain.fraud import FraudGate
from rms.reviews.domain.materializer import Top5Materializer
from rms.reviews.domain.repository import InMemoryReviewStore, ReviewStore
from rms.reviews.domain.service import ReviewService
from rms.reviews.infra.postgres_repo import PostgresReviewStore
from rms.settings import settings

_store: ReviewStore = InMemoryReviewStore()
_gate = FraudGate.from_settings(settings)
_materializer = Top5Materializer(limit=settings.review_top_n)
_service = ReviewService(_store, gate=_gate, materializer=_materializer)


def configure(
    *,
    store: Optional[ReviewStore] = None,
    gate: Optional[FraudGate] = None,
    materializer: Optional[Top5Materializer] = None,
) -> None:
    global _store, _gate, _materializer, _service
    if store is not None:
        _store = store
    if gate is not None:
        _gate = gate
    if materializer is not None:
        _materializer = materializer
    _service = ReviewService(_store, gate=_gate, materializer=_materializer)


def configure_postgres(pool: asyncpg.Pool) -> None:
    configure(store=PostgresReviewStore(pool))


def get_store() -> ReviewStore:
    return _store


def get_review_service() -> ReviewService:
    return _service
