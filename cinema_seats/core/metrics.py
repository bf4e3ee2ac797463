"""
Prometheus metrics for requests and bookings
"""

from prometheus_client import Counter, Histogram, REGISTRY


def _counter(name, documentation, labelnames=()):
    # Module may be re-imported under test runners; reuse registered collectors
    try:
        return Counter(name, documentation, labelnames)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _histogram(name, documentation, labelnames=()):
    try:
        return Histogram(name, documentation, labelnames)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUEST_COUNT = _counter(
    "app_requests_total",
    "Total requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = _histogram(
    "app_request_duration_seconds",
    "Request duration",
    ["method", "endpoint"]
)

BOOKINGS = _counter(
    "seat_bookings_total",
    "Booking invocations by outcome",
    ["outcome"]
)
SEATS_BOOKED = _counter(
    "seats_booked_total",
    "Seats marked taken by the booking function"
)
WEBHOOK_DELIVERIES = _counter(
    "webhook_deliveries_total",
    "Webhook notification attempts by outcome",
    ["outcome"]
)
FEED_PUBLISH_FAILURES = _counter(
    "seat_feed_publish_failures_total",
    "Change events that could not be published"
)
