from uuid import uuid4

import pytest

from rms.reviews.domain.models import ReviewStatus


def _payload(property_id, /, **overrides):
    body = {
        "property_id": str(property_id),
        "user_name": "Shruti",
        "overall_rating": 4,
        "structured": {},
        "body": "This is a valid length body.",
    }
    body.update(overrides)
    return body


@pytest.fixture
def prop(configured_store):
    return configured_store.add_property("Demo Villa")


@pytest.mark.asyncio
async def test_rejects_invalid_rating(api_client, prop) -> None:
    res = await api_client.post("/api/reviews", json=_payload(prop.id, overall_rating=10))

    assert res.status_code == 400
    data = res.json()
    assert data["detail"] == "validation_error"
    assert data["errors"][0]["loc"] == ["body", "overall_rating"]
    assert "request_id" in data


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"overall_rating": 0},
        {"user_name": ""},
        {"body": ""},
        {"property_id": "not-a-uuid"},
    ],
)
async def test_schema_violations_are_bad_request(api_client, configured_store, prop, overrides) -> None:
    res = await api_client.post("/api/reviews", json=_payload(prop.id, **overrides))

    assert res.status_code == 400
    assert res.json()["detail"] == "validation_error"
    assert configured_store.reviews == {}


@pytest.mark.asyncio
async def test_malformed_review_id_is_bad_request(api_client) -> None:
    res = await api_client.post("/api/reviews/not-a-uuid/publish")

    assert res.status_code == 400
    assert res.json()["detail"] == "validation_error"


@pytest.mark.asyncio
async def test_unknown_property_is_bad_request(api_client, configured_store) -> None:
    res = await api_client.post("/api/reviews", json=_payload(uuid4()))

    assert res.status_code == 400
    assert res.json()["detail"] == "property_not_found"
    assert configured_store.reviews == {}


@pytest.mark.asyncio
async def test_published_review_returns_created(api_client, prop) -> None:
    res = await api_client.post("/api/reviews", json=_payload(prop.id, structured={"comfort": 5}))

    assert res.status_code == 201
    data = res.json()
    assert data["status"] == "published"
    assert "message" not in data
    assert data["review"]["property_id"] == str(prop.id)
    assert data["review"]["structured"] == {"comfort": 5}
    assert data["review"]["status"] == "published"
    assert res.headers.get("X-Request-Id")


@pytest.mark.asyncio
async def test_short_review_is_held_for_moderation(api_client, prop) -> None:
    res = await api_client.post("/api/reviews", json=_payload(prop.id, body="Too short"))

    assert res.status_code == 200
    data = res.json()
    assert data["status"] == "pending"
    assert data["message"] == "held for moderation"
    assert data["review"]["status"] == "pending"


@pytest.mark.asyncio
async def test_publish_updates_top5(api_client, configured_store, prop) -> None:
    created_ids = []
    for i in range(6):
        res = await api_client.post(
            "/api/reviews",
            json=_payload(prop.id, user_name=f"User{i}", body=f"Excellent stay and friendly staff {i}"),
        )
        created_ids.append(res.json()["review"]["id"])
    for review_id in created_ids:
        res = await api_client.post(f"/api/reviews/{review_id}/publish")
        assert res.status_code == 200

    top = await api_client.get(f"/api/properties/{prop.id}/top5")

    assert top.status_code == 200
    data = top.json()
    assert data["property_id"] == str(prop.id)
    assert data["name"] == "Demo Villa"
    assert [item["id"] for item in data["top_5_reviews"]] == list(reversed(created_ids[1:]))


@pytest.mark.asyncio
async def test_publish_held_review_returns_cache(api_client, configured_store, prop) -> None:
    held = configured_store.add_review(prop.id, user_name="mod", body="Too short")

    res = await api_client.post(f"/api/reviews/{held.id}/publish")

    assert res.status_code == 200
    data = res.json()
    assert data["property_id"] == str(prop.id)
    assert [item["id"] for item in data["top_5_reviews"]] == [str(held.id)]
    assert configured_store.reviews[held.id].status is ReviewStatus.PUBLISHED


@pytest.mark.asyncio
async def test_publish_unknown_review_is_404(api_client, prop) -> None:
    res = await api_client.post(f"/api/reviews/{uuid4()}/publish")

    assert res.status_code == 404
    assert res.json()["detail"] == "review_not_found"


@pytest.mark.asyncio
async def test_top5_unknown_property_is_404(api_client) -> None:
    res = await api_client.get(f"/api/properties/{uuid4()}/top5")

    assert res.status_code == 404
    assert res.json()["detail"] == "property_not_found"


@pytest.mark.asyncio
async def test_top5_of_new_property_is_empty_list(api_client, prop) -> None:
    res = await api_client.get(f"/api/properties/{prop.id}/top5")

    assert res.status_code == 200
    assert res.json()["top_5_reviews"] == []


@pytest.mark.asyncio
async def test_liveness_and_metrics(api_client, prop) -> None:
    await api_client.post("/api/reviews", json=_payload(prop.id))

    live = await api_client.get("/health/live")
    metrics = await api_client.get("/metrics")

    assert live.json() == {"status": "ok"}
    assert metrics.status_code == 200
    assert "rms_reviews_submitted_total" in metrics.text
