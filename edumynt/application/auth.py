"""Auth façade used by the pages.

Every operation returns an AuthResponse and never raises. Backend errors are
translated to user-facing text through ERROR_MESSAGES; unknown messages pass
through unchanged. Nothing is retried here.
"""
import structlog

from .auth_backend import AuthBackend
from .dto import AuthResponse
from .errors import AuthApiError
from ..infrastructure.metrics import auth_events_total

logger = structlog.get_logger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred. Please try again."

ERROR_MESSAGES = {
    "Invalid login credentials":
        "Invalid email or password. Please check your credentials and try again.",
    "Email not confirmed":
        "Please check your email and click the confirmation link before signing in.",
    "User already registered":
        "An account with this email already exists. Please sign in instead.",
    "Password should be at least 6 characters":
        "Password must be at least 6 characters long.",
    "Unable to validate email address: invalid format":
        "Please enter a valid email address.",
    "Signup is disabled":
        "Account registration is currently disabled. Please contact support.",
    "Email rate limit exceeded":
        "Too many emails sent. Please wait a few minutes before trying again.",
}


def get_error_message(message: str | None) -> str:
    if message in ERROR_MESSAGES:
        return ERROR_MESSAGES[message]
    return message or UNEXPECTED_ERROR


def _run(event: str, call) -> AuthResponse:
    try:
        data = call()
    except AuthApiError as e:
        auth_events_total.labels(event=event, outcome="error").inc()
        logger.info("auth_error", auth_event=event, error=e.message)
        return AuthResponse(success=False, error=get_error_message(e.message))
    except Exception:
        auth_events_total.labels(event=event, outcome="error").inc()
        logger.exception("auth_unexpected_error", auth_event=event)
        return AuthResponse(success=False, error=UNEXPECTED_ERROR)
    auth_events_total.labels(event=event, outcome="ok").inc()
    return AuthResponse(success=True, data=data)


def sign_up(backend: AuthBackend, email: str, password: str, full_name: str) -> AuthResponse:
    return _run("sign_up", lambda: backend.sign_up(email, password, full_name))


def sign_in(backend: AuthBackend, email: str, password: str) -> AuthResponse:
    return _run("sign_in", lambda: backend.sign_in_with_password(email, password))


def sign_out(backend: AuthBackend, access_token: str | None) -> AuthResponse:
    return _run("sign_out", lambda: backend.sign_out(access_token))


def reset_password(backend: AuthBackend, email: str, redirect_to: str | None = None) -> AuthResponse:
    return _run("reset_password", lambda: backend.reset_password_for_email(email, redirect_to))
