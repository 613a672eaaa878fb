"""Prometheus metrics for session-auth-service.

Every metric the service exports is declared here; other modules import
the one they need and record at the point of action.  The default
registry is scraped through GET /metrics.

Counters only go up, so tests assert on deltas rather than absolute values.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# --- HTTP layer (recorded by MetricsMiddleware) ---

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # Argon2 hashing dominates register/login/change-password latency,
    # so the buckets reach further than a plain CRUD service would need.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# --- Auth domain (recorded by AuthService) ---

AUTH_OPERATIONS = Counter(
    "auth_operations_total",
    "Auth operations by outcome",
    # operation: register | login | change_password
    # outcome: success or the DomainError code that ended the operation
    ["operation", "outcome"],
)
