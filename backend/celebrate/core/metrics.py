"""
Prometheus metrics for bookings, payments and the venue cache.
Scraped from the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

booking_attempts = Counter(
    'celebrate_booking_attempts_total',
    'Booking creation attempts',
    ['outcome']  # created, date_taken, rejected
)

booking_transitions = Counter(
    'celebrate_booking_transitions_total',
    'Booking status changes',
    ['status']
)

payment_intents = Counter(
    'celebrate_payment_intents_total',
    'Payment intent requests',
    ['outcome']  # created, error
)

webhook_events = Counter(
    'celebrate_webhook_events_total',
    'Payment provider webhook deliveries',
    ['outcome']  # processed, duplicate, ignored, rejected
)

webhook_latency = Histogram(
    'celebrate_webhook_latency_seconds',
    'Webhook processing latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

cache_operations = Counter(
    'celebrate_cache_operations_total',
    'Venue search cache operations',
    ['operation', 'result']
)

rate_limited_requests = Counter(
    'celebrate_rate_limited_requests_total',
    'Requests rejected by the rate limiter',
    ['scope']
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(outcome: str):
    """Outcome: created, date_taken, rejected"""
    booking_attempts.labels(outcome=outcome).inc()


def record_booking_transition(status: str):
    booking_transitions.labels(status=status).inc()


def record_payment_intent(outcome: str):
    payment_intents.labels(outcome=outcome).inc()


def record_webhook(outcome: str):
    """Outcome: processed, duplicate, ignored, rejected"""
    webhook_events.labels(outcome=outcome).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()


def record_rate_limited(scope: str):
    rate_limited_requests.labels(scope=scope).inc()
