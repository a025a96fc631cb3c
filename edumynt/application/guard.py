"""Route classification and redirect rules evaluated before every page view."""
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote

AUTH_PREFIX = "/auth/"
PROTECTED_PREFIXES = ("/dashboard", "/course", "/lesson")
PREVIEW_MARKER = "/preview"
SIGNIN_PATH = "/auth/signin"
DASHBOARD_PATH = "/dashboard"


class RouteKind(str, Enum):
    PREVIEW = "preview"
    AUTH = "auth"
    PROTECTED = "protected"
    PUBLIC = "public"


@dataclass(frozen=True)
class GuardDecision:
    redirect_to: str | None = None

    @property
    def allowed(self) -> bool:
        return self.redirect_to is None


def classify_path(path: str) -> RouteKind:
    if PREVIEW_MARKER in path:
        return RouteKind.PREVIEW
    if path.startswith(AUTH_PREFIX):
        return RouteKind.AUTH
    if path.startswith(PROTECTED_PREFIXES):
        return RouteKind.PROTECTED
    return RouteKind.PUBLIC


def signin_redirect(path: str) -> str:
    return f"{SIGNIN_PATH}?redirectTo={quote(path, safe='/')}"


def evaluate(path: str, has_session: bool) -> GuardDecision:
    kind = classify_path(path)
    if kind is RouteKind.PREVIEW:
        return GuardDecision()
    if has_session and kind is RouteKind.AUTH:
        return GuardDecision(redirect_to=DASHBOARD_PATH)
    if not has_session and kind is RouteKind.PROTECTED:
        return GuardDecision(redirect_to=signin_redirect(path))
    return GuardDecision()
