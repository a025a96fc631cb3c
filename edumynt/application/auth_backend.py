"""Auth store operations: accounts, sessions, recovery.

Failures raise AuthApiError carrying the same wire-level messages a hosted auth
service answers with, so the façade in `auth.py` can translate them.
"""
from urllib.parse import urlencode, urlsplit

import structlog
from jose import JWTError
from sqlalchemy.orm import Session

from .dto import ActionLink, AuthSession, SignUpResult
from .errors import AuthApiError
from .use_cases.register_user import RegisterUser, MIN_PASSWORD_LENGTH
from ..config import settings
from ..domain.entities import User
from ..infrastructure.repositories import UserRepository, RefreshTokenRepository, to_domain
from ..infrastructure.security import (
    PasswordHasher, create_access_token, decode_access_token,
    create_action_token, decode_action_token, RECOVERY, SIGNUP,
)

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid login credentials"
EMAIL_NOT_CONFIRMED = "Email not confirmed"
EMAIL_RATE_LIMIT = "Email rate limit exceeded"
INVALID_REFRESH_TOKEN = "Invalid Refresh Token: Refresh Token Not Found"
SESSION_MISSING = "Auth session missing!"
INVALID_JWT = "Invalid JWT"
USER_NOT_FOUND = "User not found"
LINK_INVALID = "Email link is invalid or has expired"


def is_site_url(url: str | None) -> bool:
    """Same scheme and host as SITE_URL; a shared string prefix is not enough."""
    if not url:
        return False
    site, target = urlsplit(settings.SITE_URL), urlsplit(url)
    return (target.scheme, target.netloc) == (site.scheme, site.netloc)


class AuthBackend:
    def __init__(self, db: Session, hasher: PasswordHasher | None = None):
        self.users = UserRepository(db)
        self.tokens = RefreshTokenRepository(db)
        self.hasher = hasher or PasswordHasher()

    def _issue_session(self, user: User) -> AuthSession:
        access_token, expires_at = create_access_token(sub=user.id, email=user.email)
        refresh_token = self.tokens.issue(user.id)
        return AuthSession(access_token=access_token, refresh_token=refresh_token,
                           expires_at=expires_at, user=user)

    def sign_up(self, email: str, password: str, full_name: str | None = None) -> SignUpResult:
        uc = RegisterUser(
            repo=self.users,
            hasher=self.hasher,
            signup_enabled=settings.SIGNUP_ENABLED,
            require_confirmation=settings.REQUIRE_EMAIL_CONFIRMATION,
        )
        user = uc.execute(email, password, full_name)
        if user.email_confirmed_at is None:
            token = create_action_token(user.id, SIGNUP)
            link = f"{settings.SITE_URL}/api/auth/verify?" + urlencode({"token": token, "type": SIGNUP})
            return SignUpResult(user=user, confirmation=ActionLink(user.email, link, SIGNUP))
        return SignUpResult(user=user, session=self._issue_session(user))

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        row = self.users.get_row_by_email(email)
        if not row or not row.is_active or not self.hasher.verify(password, row.password_hash):
            raise AuthApiError(INVALID_CREDENTIALS, status=400)
        if row.email_confirmed_at is None:
            raise AuthApiError(EMAIL_NOT_CONFIRMED, status=400)
        return self._issue_session(to_domain(row))

    def get_user(self, access_token: str | None) -> User:
        if not access_token:
            raise AuthApiError(SESSION_MISSING, status=401)
        try:
            claims = decode_access_token(access_token)
        except JWTError:
            raise AuthApiError(INVALID_JWT, status=401)
        user = self.users.get_by_id(claims["sub"])
        if not user:
            raise AuthApiError(USER_NOT_FOUND, status=404)
        return user

    def sign_out(self, access_token: str | None) -> None:
        user = self.get_user(access_token)
        revoked = self.tokens.revoke_all(user.id)
        logger.info("refresh_tokens_revoked", user_id=user.id, count=revoked)

    def refresh_session(self, refresh_token: str | None) -> AuthSession:
        user_id = self.tokens.consume(refresh_token) if refresh_token else None
        if not user_id:
            raise AuthApiError(INVALID_REFRESH_TOKEN, status=400)
        user = self.users.get_by_id(user_id)
        if not user:
            raise AuthApiError(USER_NOT_FOUND, status=404)
        return self._issue_session(user)

    def reset_password_for_email(self, email: str, redirect_to: str | None = None) -> ActionLink | None:
        """Returns the recovery link to mail, or None for unknown addresses."""
        row = self.users.get_row_by_email(email)
        if not row:
            # unknown addresses look like a success to the caller
            return None
        if self.users.recovery_sent_recently(row, settings.RECOVERY_EMAIL_INTERVAL_SECONDS):
            raise AuthApiError(EMAIL_RATE_LIMIT, status=429)
        target = redirect_to if is_site_url(redirect_to) else f"{settings.SITE_URL}/auth/reset-password"
        token = create_action_token(row.id, RECOVERY)
        self.users.mark_recovery_sent(row)
        return ActionLink(row.email, f"{target}?" + urlencode({"token": token, "type": RECOVERY}), RECOVERY)

    def update_password(self, recovery_token: str, new_password: str) -> User:
        try:
            user_id = decode_action_token(recovery_token, RECOVERY)
        except JWTError:
            raise AuthApiError(LINK_INVALID, status=403)
        if len(new_password or "") < MIN_PASSWORD_LENGTH:
            raise AuthApiError("Password should be at least 6 characters", status=422)
        row = self.users.get_row(user_id)
        if not row:
            raise AuthApiError(USER_NOT_FOUND, status=404)
        self.users.set_password(row, self.hasher.hash(new_password))
        self.tokens.revoke_all(row.id)
        return to_domain(row)

    def verify_email(self, token: str) -> AuthSession:
        try:
            user_id = decode_action_token(token, SIGNUP)
        except JWTError:
            raise AuthApiError(LINK_INVALID, status=403)
        row = self.users.get_row(user_id)
        if not row:
            raise AuthApiError(USER_NOT_FOUND, status=404)
        return self._issue_session(self.users.confirm_email(row))
