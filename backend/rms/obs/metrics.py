"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Summary


REQUEST_COUNTER = Counter(
	"rms_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"rms_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

REVIEWS_SUBMITTED = Counter(
	"rms_reviews_submitted_total",
	"Reviews accepted by the moderation pipeline",
	["status"],
)

REVIEWS_PUBLISHED = Counter(
	"rms_reviews_published_total",
	"Held reviews released through the publish workflow",
)

TOP5_MATERIALIZATIONS = Counter(
	"rms_top5_materializations_total",
	"Top-5 cache recomputations",
	["trigger"],
)

TOP5_MATERIALIZE_DURATION = Histogram(
	"rms_top5_materialize_duration_seconds",
	"Time spent recomputing a property's top-5 cache",
	buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5),
)

REVIEW_TX_FAILURES = Counter(
	"rms_review_transaction_failures_total",
	"Review transactions rolled back because of store errors",
	["operation"],
)

POSTGRES_UP = Gauge("rms_postgres_up", "Postgres availability (1=up,0=down)")
POSTGRES_LATENCY = Summary("rms_postgres_latency_seconds", "Postgres ping latency (seconds)")


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_review_submitted(status: str) -> None:
	REVIEWS_SUBMITTED.labels(status=status).inc()


def inc_review_published() -> None:
	REVIEWS_PUBLISHED.inc()


def observe_materialization(trigger: str, elapsed_seconds: float) -> None:
	TOP5_MATERIALIZATIONS.labels(trigger=trigger).inc()
	TOP5_MATERIALIZE_DURATION.observe(elapsed_seconds)


def inc_transaction_failure(operation: str) -> None:
	REVIEW_TX_FAILURES.labels(operation=operation).inc()


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		POSTGRES_LATENCY.observe(latency_seconds)
