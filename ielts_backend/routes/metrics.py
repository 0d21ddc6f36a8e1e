"""
Prometheus metrics endpoint.

Exposes request and sign-in metrics for monitoring.
"""
from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["Monitoring"])

# ============================================
# HTTP Request Metrics
# ============================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Business Metrics - Accounts
# ============================================

google_logins = Counter(
    'google_logins_total',
    'Google sign-in attempts by flow and outcome',
    ['flow', 'outcome']
)

users_created = Counter(
    'users_created_total',
    'Users created on first Google sign-in'
)

profiles_completed = Counter(
    'profiles_completed_total',
    'Profile completion requests that updated a user'
)


# ============================================
# Metrics Helper Functions
# ============================================

def track_request(method: str, endpoint: str, status: int, duration_seconds: float):
    """Record HTTP request metrics."""
    http_requests_total.labels(
        method=method,
        endpoint=endpoint,
        status=status
    ).inc()

    http_request_duration.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration_seconds)


def track_login(flow: str, outcome: str):
    """Record a sign-in attempt. flow is "callback" or "id_token"."""
    google_logins.labels(flow=flow, outcome=outcome).inc()


def track_user_created():
    users_created.inc()


def track_profile_completed():
    profiles_completed.inc()


# ============================================
# Prometheus Endpoint
# ============================================

@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns all registered metrics in Prometheus format.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
