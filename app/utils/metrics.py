"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
outputs_created_total = Counter(
    "outputs_created_total",
    "Total number of generated outputs stored",
    ["output_type", "owner_kind"],
)

outputs_truncated_total = Counter(
    "outputs_truncated_total",
    "Total number of stored outputs whose preview is truncated",
    ["output_type"],
)

access_decisions_total = Counter(
    "access_decisions_total",
    "Access decisions by outcome",
    ["outcome"],  # full, preview, denied, override
)

billing_events_total = Counter(
    "billing_events_total",
    "Billing lifecycle events received",
    ["event_type", "outcome"],  # applied, ignored, duplicate, rejected
)

session_migrations_total = Counter(
    "session_migrations_total",
    "Anonymous outputs reassigned to a user on login",
)

# Histograms
output_full_words = Histogram(
    "output_full_words",
    "Word count of generated outputs",
    buckets=[100, 250, 500, 1000, 2000, 5000, 10000],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
