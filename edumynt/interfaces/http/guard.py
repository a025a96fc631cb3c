from fastapi import Request
from fastapi.responses import RedirectResponse

from .authz import lookup_session
from ...application.guard import evaluate
from ...infrastructure.metrics import guard_redirects_total

# api, docs and operational endpoints are not pages
EXEMPT_PREFIXES = ("/api/", "/health", "/metrics", "/docs", "/redoc", "/openapi.json", "/favicon.ico")


async def route_guard(request: Request, call_next):
    path = request.url.path
    if path.startswith(EXEMPT_PREFIXES):
        return await call_next(request)

    decision = evaluate(path, has_session=lookup_session(request) is not None)
    if not decision.allowed:
        guard_redirects_total.labels(target=decision.redirect_to.split("?", 1)[0]).inc()
        return RedirectResponse(decision.redirect_to, status_code=307)
    return await call_next(request)
