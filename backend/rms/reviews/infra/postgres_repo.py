"""PostgreSQL-backed review store using asyncpg."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator, Sequence
from uuid import UUID

import asyncpg

from rms.reviews.domain.exceptions import TransactionFailure
from rms.reviews.domain.models import Property, Review, ReviewSnapshot, ReviewStatus, ReviewSubmission
from rms.reviews.domain.repository import ReviewStore, ReviewTransaction

_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

_REVIEW_COLUMNS = "id, property_id, user_name, overall_rating, structured, body, status, created_at"

_COUNT_RECENT_SQL = """
SELECT COUNT(*)::int
FROM reviews
WHERE user_name = $1
  AND created_at >= now() - $2::interval
"""

_PROPERTY_SQL = """
SELECT id, name, top_5_reviews, created_at, updated_at
FROM properties
WHERE id = $1
"""


def _decode_json(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def _row_to_review(row: asyncpg.Record) -> Review:
    return Review(
        id=row["id"],
        property_id=row["property_id"],
        user_name=str(row["user_name"]),
        overall_rating=int(row["overall_rating"]),
        structured=_decode_json(row["structured"]) or {},
        body=str(row["body"]),
        status=ReviewStatus(str(row["status"])),
        created_at=row["created_at"],
    )


def _row_to_property(row: asyncpg.Record) -> Property:
    records = _decode_json(row["top_5_reviews"]) or []
    return Property(
        id=row["id"],
        name=str(row["name"]),
        top_5_reviews=[ReviewSnapshot.from_record(record) for record in records],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


async def _count_recent(conn: asyncpg.Connection | asyncpg.Pool, user_name: str, window: timedelta) -> int:
    value = await conn.fetchval(_COUNT_RECENT_SQL, user_name, window)
    return int(value or 0)


class PostgresReviewTransaction(ReviewTransaction):
    """Review operations bound to one connection with an open transaction."""

    def __init__(self, conn: asyncpg.Connection) -> None:
        self._conn = conn

    async def count_recent_by_author(self, user_name: str, window: timedelta) -> int:
        return await _count_recent(self._conn, user_name, window)

    async def insert_review(self, submission: ReviewSubmission, status: ReviewStatus) -> Review:
        row = await self._conn.fetchrow(
            f"""
            INSERT INTO reviews (property_id, user_name, overall_rating, structured, body, status)
            VALUES ($1, $2, $3, $4::jsonb, $5, $6)
            RETURNING {_REVIEW_COLUMNS}
            """,
            submission.property_id,
            submission.user_name,
            submission.overall_rating,
            json.dumps(dict(submission.structured)),
            submission.body,
            status.value,
        )
        if row is None:  # pragma: no cover - asyncpg always returns a row for RETURNING
            raise RuntimeError("Failed to insert review")
        return _row_to_review(row)

    async def mark_published(self, review_id: UUID) -> UUID | None:
        return await self._conn.fetchval(
            "UPDATE reviews SET status = 'published' WHERE id = $1 RETURNING property_id",
            review_id,
        )

    async def list_recent_published(self, property_id: UUID, limit: int) -> Sequence[Review]:
        rows = await self._conn.fetch(
            f"""
            SELECT {_REVIEW_COLUMNS}
            FROM reviews
            WHERE property_id = $1 AND status = 'published'
            ORDER BY created_at DESC, id DESC
            LIMIT $2
            """,
            property_id,
            limit,
        )
        return [_row_to_review(row) for row in rows]

    async def replace_top_reviews(self, property_id: UUID, snapshots: Sequence[ReviewSnapshot]) -> None:
        await self._conn.execute(
            """
            UPDATE properties
            SET top_5_reviews = $2::jsonb,
                updated_at = now()
            WHERE id = $1
            """,
            property_id,
            json.dumps([snapshot.to_record() for snapshot in snapshots]),
        )

    async def get_property(self, property_id: UUID) -> Property | None:
        row = await self._conn.fetchrow(_PROPERTY_SQL, property_id)
        return _row_to_property(row) if row else None


class PostgresReviewStore(ReviewStore):
    """Persists reviews and property caches using an injected asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[ReviewTransaction]:
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    yield PostgresReviewTransaction(conn)
        except _STORE_ERRORS as exc:
            raise TransactionFailure("review_transaction_failed") from exc

    async def property_exists(self, property_id: UUID) -> bool:
        try:
            row = await self._pool.fetchrow("SELECT 1 FROM properties WHERE id = $1", property_id)
        except _STORE_ERRORS as exc:
            raise TransactionFailure("review_store_unavailable") from exc
        return row is not None

    async def get_property(self, property_id: UUID) -> Property | None:
        try:
            row = await self._pool.fetchrow(_PROPERTY_SQL, property_id)
        except _STORE_ERRORS as exc:
            raise TransactionFailure("review_store_unavailable") from exc
        return _row_to_property(row) if row else None

    async def count_recent_by_author(self, user_name: str, window: timedelta) -> int:
        try:
            return await _count_recent(self._pool, user_name, window)
        except _STORE_ERRORS as exc:
            raise TransactionFailure("review_store_unavailable") from exc
