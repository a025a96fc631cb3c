import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from ...config import settings
from ...domain.entities import User
from ...infrastructure.security import decode_access_token

logger = structlog.get_logger(__name__)

bearer = HTTPBearer(auto_error=False)


def read_access_token(request: Request) -> str | None:
    """Bearer header first, then the session cookie."""
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def lookup_session(request: Request) -> dict | None:
    """Claims of the current session; an unreadable token counts as no session."""
    token = read_access_token(request)
    if not token:
        return None
    try:
        return decode_access_token(token)
    except JWTError as e:
        logger.warning("session_lookup_failed", path=request.url.path, error=str(e))
        return None


def get_current_user(
    request: Request,
    # unused: declares the bearer scheme in OpenAPI; the cookie is read in lookup_session
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> User | None:
    claims = lookup_session(request)
    if not claims:
        return None
    return User(id=claims["sub"], email=claims.get("email", ""))


def require_user(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user
