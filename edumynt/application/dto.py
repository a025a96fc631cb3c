from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..domain.entities import User


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    expires_at: datetime
    user: User
    token_type: str = "bearer"


@dataclass
class ActionLink:
    """A recovery or confirmation link waiting to be mailed."""
    email: str
    link: str
    kind: str


@dataclass
class SignUpResult:
    user: User
    session: AuthSession | None = None
    confirmation: ActionLink | None = None


@dataclass
class AuthResponse:
    success: bool
    error: str | None = None
    data: Any = None
