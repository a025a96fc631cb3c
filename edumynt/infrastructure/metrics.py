from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# HTTP
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Store
db_queries_total = Counter('db_queries_total', 'Total database queries', ['operation'])

# Auth / enrollment / guard
auth_events_total = Counter(
    'auth_events_total',
    'Auth operations by event and outcome',
    ['event', 'outcome']
)
enrollments_total = Counter('enrollments_total', 'Enrollment attempts', ['outcome'])
guard_redirects_total = Counter('guard_redirects_total', 'Route guard redirects', ['target'])


def metrics_endpoint():
    """Prometheus exposition"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
