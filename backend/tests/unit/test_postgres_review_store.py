import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from rms.reviews.domain.exceptions import TransactionFailure
from rms.reviews.domain.models import ReviewSnapshot, ReviewStatus, ReviewSubmission
from rms.reviews.infra.postgres_repo import PostgresReviewStore

NOW = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


def _mock_pool():
    pool = MagicMock()
    conn = AsyncMock()
    conn.transaction = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    pool.fetchrow = AsyncMock()
    pool.fetchval = AsyncMock()
    return pool, conn


def _review_row(property_id, status: str = "published", **overrides):
    row = {
        "id": uuid4(),
        "property_id": property_id,
        "user_name": "Shruti",
        "overall_rating": 5,
        "structured": json.dumps({"comfort": 5}),
        "body": "Lovely, quiet and clean",
        "status": status,
        "created_at": NOW,
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_insert_review_encodes_structured_as_jsonb() -> None:
    pool, conn = _mock_pool()
    property_id = uuid4()
    conn.fetchrow.return_value = _review_row(property_id, status="pending")
    store = PostgresReviewStore(pool)
    submission = ReviewSubmission(
        property_id=property_id,
        user_name="Shruti",
        overall_rating=5,
        body="Lovely, quiet and clean",
        structured={"comfort": 5},
    )

    async with store.transaction() as tx:
        review = await tx.insert_review(submission, ReviewStatus.PENDING)

    sql, *params = conn.fetchrow.call_args.args
    assert "INSERT INTO reviews" in sql
    assert "$4::jsonb" in sql
    assert params == [property_id, "Shruti", 5, json.dumps({"comfort": 5}), "Lovely, quiet and clean", "pending"]
    assert review.status is ReviewStatus.PENDING
    assert review.structured == {"comfort": 5}
    conn.transaction.assert_called_once()


@pytest.mark.asyncio
async def test_list_recent_published_orders_newest_first() -> None:
    pool, conn = _mock_pool()
    property_id = uuid4()
    conn.fetch.return_value = [_review_row(property_id)]
    store = PostgresReviewStore(pool)

    async with store.transaction() as tx:
        reviews = await tx.list_recent_published(property_id, 5)

    sql, *params = conn.fetch.call_args.args
    assert "status = 'published'" in sql
    assert "ORDER BY created_at DESC, id DESC" in sql
    assert params == [property_id, 5]
    assert len(reviews) == 1


@pytest.mark.asyncio
async def test_replace_top_reviews_writes_snapshot_records() -> None:
    pool, conn = _mock_pool()
    property_id = uuid4()
    snapshot = ReviewSnapshot(
        id=uuid4(),
        user_name="Shruti",
        overall_rating=4,
        structured={},
        body="Good value for money",
        created_at=NOW,
    )
    store = PostgresReviewStore(pool)

    async with store.transaction() as tx:
        await tx.replace_top_reviews(property_id, [snapshot])

    sql, pid, payload = conn.execute.call_args.args
    assert "UPDATE properties" in sql
    assert "updated_at = now()" in sql
    assert pid == property_id
    assert json.loads(payload) == [snapshot.to_record()]


@pytest.mark.asyncio
async def test_replace_top_reviews_with_nothing_writes_empty_array() -> None:
    pool, conn = _mock_pool()
    store = PostgresReviewStore(pool)

    async with store.transaction() as tx:
        await tx.replace_top_reviews(uuid4(), [])

    assert conn.execute.call_args.args[2] == "[]"


@pytest.mark.asyncio
async def test_mark_published_returns_property_id() -> None:
    pool, conn = _mock_pool()
    property_id = uuid4()
    conn.fetchval.return_value = property_id
    store = PostgresReviewStore(pool)

    async with store.transaction() as tx:
        assert await tx.mark_published(uuid4()) == property_id

    assert "RETURNING property_id" in conn.fetchval.call_args.args[0]


@pytest.mark.asyncio
async def test_store_errors_inside_transaction_become_transaction_failure() -> None:
    pool, conn = _mock_pool()
    conn.fetchval.side_effect = ConnectionResetError("connection lost")
    store = PostgresReviewStore(pool)

    with pytest.raises(TransactionFailure) as exc:
        async with store.transaction() as tx:
            await tx.mark_published(uuid4())

    assert isinstance(exc.value.__cause__, ConnectionResetError)
    assert exc.value.status_code == 503


@pytest.mark.asyncio
async def test_get_property_decodes_cached_snapshots() -> None:
    pool, _ = _mock_pool()
    property_id = uuid4()
    snapshot = ReviewSnapshot(
        id=uuid4(),
        user_name="Ana",
        overall_rating=3,
        structured={"cleanliness": 2},
        body="Average, a bit noisy",
        created_at=NOW,
    )
    pool.fetchrow.return_value = {
        "id": property_id,
        "name": "Downtown Loft",
        "top_5_reviews": json.dumps([snapshot.to_record()]),
        "created_at": NOW,
        "updated_at": NOW,
    }
    store = PostgresReviewStore(pool)

    prop = await store.get_property(property_id)

    assert prop is not None
    assert prop.name == "Downtown Loft"
    assert prop.top_5_reviews == [snapshot]


@pytest.mark.asyncio
async def test_count_recent_uses_database_clock() -> None:
    pool, _ = _mock_pool()
    pool.fetchval.return_value = 2
    store = PostgresReviewStore(pool)

    count = await store.count_recent_by_author("Shruti", timedelta(hours=24))

    sql, user_name, window = pool.fetchval.call_args.args
    assert "now() - $2::interval" in sql
    assert (user_name, window) == ("Shruti", timedelta(hours=24))
    assert count == 2


@pytest.mark.asyncio
async def test_property_exists_maps_store_errors() -> None:
    pool, _ = _mock_pool()
    pool.fetchrow.side_effect = OSError("unreachable")
    store = PostgresReviewStore(pool)

    with pytest.raises(TransactionFailure):
        await store.property_exists(uuid4())
