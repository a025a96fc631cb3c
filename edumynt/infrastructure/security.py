import secrets
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError
from passlib.context import CryptContext

from ..config import settings

pwd = CryptContext(
    schemes=["bcrypt_sha256"],
    deprecated="auto",
    bcrypt_sha256__truncate_error=False,
)

ACCESS = "access"
RECOVERY = "recovery"
SIGNUP = "signup"


class PasswordHasher:
    def hash(self, plain: str) -> str: return pwd.hash(plain)
    def verify(self, plain: str, hashed: str) -> bool: return pwd.verify(plain, hashed)


def create_access_token(sub: str, email: str, minutes: int | None = None) -> tuple[str, datetime]:
    """Returns the signed token together with its expiry."""
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=minutes or settings.ACCESS_TOKEN_MINUTES)
    payload = {"sub": sub, "email": email, "type": ACCESS, "iat": now, "exp": exp}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM), exp


def decode_access_token(token: str) -> dict:
    """Returns the claims of a valid access token or raises JWTError."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != ACCESS:
        raise JWTError("Not an access token")
    if not payload.get("sub"):
        raise JWTError("No subject")
    return payload


def create_action_token(sub: str, purpose: str, minutes: int | None = None) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=minutes or settings.ACTION_TOKEN_MINUTES)
    payload = {"sub": sub, "type": purpose, "exp": exp}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_action_token(token: str, purpose: str) -> str:
    """Returns the user id (sub) of a recovery/signup token or raises JWTError."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != purpose:
        raise JWTError("Wrong token type")
    sub = payload.get("sub")
    if not sub:
        raise JWTError("No subject")
    return sub


def new_refresh_token() -> str:
    return secrets.token_urlsafe(48)
