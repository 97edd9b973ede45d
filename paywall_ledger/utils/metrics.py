"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
articles_published_total = Counter(
    "articles_published_total",
    "Total number of published articles",
    ["pricing"],  # free, paid
)

payments_total = Counter(
    "payments_total",
    "Total recorded article payments",
)

payment_amount_total = Counter(
    "payment_amount_total",
    "Sum of amount_paid over recorded payments (minor units)",
)

refunds_total = Counter(
    "refunds_total",
    "Refund attempts by result",
    ["result"],  # ok, window_expired, payout_failed, rejected
)

withdrawals_total = Counter(
    "withdrawals_total",
    "Completed payouts out of the ledger",
    ["kind"],  # platform_fees, author_earnings, refund
)

payout_failures_total = Counter(
    "payout_failures_total",
    "Payout attempts that failed and were rolled back",
    ["kind"],
)

ledger_rejections_total = Counter(
    "ledger_rejections_total",
    "Ledger operations rejected with a domain error",
    ["code"],
)

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=open)",
    ["name"],
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
