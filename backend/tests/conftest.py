import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from rms.infra import postgres
from rms.main import app
from rms.reviews.domain import container
from rms.reviews.domain.fraud import FraudGate
from rms.reviews.domain.materializer import Top5Materializer
from rms.reviews.domain.repository import InMemoryReviewStore
from rms.reviews.domain.service import ReviewService


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture
def store() -> InMemoryReviewStore:
	return InMemoryReviewStore()


@pytest.fixture
def demo_property(store: InMemoryReviewStore):
	return store.add_property("Seaside Cottage")


@pytest.fixture
def review_service(store: InMemoryReviewStore) -> ReviewService:
	return ReviewService(store, gate=FraudGate(), materializer=Top5Materializer())


@pytest.fixture
def configured_store(store: InMemoryReviewStore):
	previous = container.get_store()
	container.configure(store=store)
	try:
		yield store
	finally:
		container.configure(store=previous)


@pytest_asyncio.fixture
async def api_client(configured_store):
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
