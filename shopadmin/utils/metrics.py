"""
Prometheus metrics for the resource client.
Collected in the default registry; the host application decides how to expose them.
"""
from prometheus_client import Counter, Histogram


api_requests_total = Counter(
    "shopadmin_api_requests_total",
    "Total backend API requests",
    ["method", "status"],  # status: HTTP code, "network" or "timeout"
)

api_request_duration_seconds = Histogram(
    "shopadmin_api_request_duration_seconds",
    "Backend API request duration",
    ["method"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10],
)

envelope_unrecognized_total = Counter(
    "shopadmin_envelope_unrecognized_total",
    "Responses that matched no known envelope shape",
    ["resource"],
)

optimistic_fallback_total = Counter(
    "shopadmin_optimistic_fallback_total",
    "Status mutations applied locally although the server call failed",
    ["resource"],
)
