import time
import logging
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from .infrastructure.db import engine, Base
from .infrastructure import models  # noqa: F401  registers the tables on Base
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .interfaces.http.guard import route_guard
from .interfaces.http.ratelimit import limiter
from .interfaces.http.routers import auth as auth_router
from .interfaces.http.routers import home as home_router
from .interfaces.http.routers import courses as courses_router
from .interfaces.http.routers import lessons as lessons_router
from .interfaces.http.routers import dashboard as dashboard_router
from .interfaces.http.routers import settings as settings_router
from .config import settings

VERSION = "0.1.0"

log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(title="Edumynt", version=VERSION)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# registered first, so it runs inside the request logging below
app.middleware("http")(route_guard)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    method = request.method
    path = request.url.path

    response = await call_next(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"

    duration = time.time() - start_time
    status_code = response.status_code
    route = request.scope.get("route")
    endpoint = getattr(route, "path", path)
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

    logger.info(
        "http_request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2)
    )

    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    logger.info("Starting edumynt", version=VERSION)
    Base.metadata.create_all(bind=engine)

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(home_router.router)
app.include_router(auth_router.router)
app.include_router(courses_router.router)
app.include_router(lessons_router.router)
app.include_router(dashboard_router.router)
app.include_router(settings_router.router)


def run():
    import uvicorn

    uvicorn.run(
        "edumynt.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
    )


if __name__ == "__main__":
    run()
