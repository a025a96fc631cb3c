import re

from ..errors import AuthApiError
from ...domain.entities import User

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


class IUserRepository:
    def get_by_email(self, email: str) -> User | None: ...
    def create(self, email: str, password_hash: str, full_name: str | None = None,
               confirmed: bool = True) -> User: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...


class RegisterUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher,
                 signup_enabled: bool = True, require_confirmation: bool = False):
        self.repo = repo
        self.hasher = hasher
        self.signup_enabled = signup_enabled
        self.require_confirmation = require_confirmation

    def execute(self, email: str, password: str, full_name: str | None = None) -> User:
        if not self.signup_enabled:
            raise AuthApiError("Signup is disabled", status=422)
        if not EMAIL_RE.match(email or ""):
            raise AuthApiError("Unable to validate email address: invalid format", status=400)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthApiError("Password should be at least 6 characters", status=422)
        if self.repo.get_by_email(email):
            raise AuthApiError("User already registered", status=422)
        pwd_hash = self.hasher.hash(password)
        return self.repo.create(email, pwd_hash, full_name=full_name,
                                confirmed=not self.require_confirmation)
