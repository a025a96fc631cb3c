from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from .models import UserORM, RefreshTokenORM
from .security import new_refresh_token
from ..config import settings
from ..domain.entities import User
from ..application.use_cases.register_user import IUserRepository


def to_domain(u: UserORM) -> User:
    return User(
        id=u.id,
        email=u.email,
        full_name=u.full_name,
        created_at=u.created_at,
        email_confirmed_at=u.email_confirmed_at,
    )


def _aware(value: datetime) -> datetime:
    # sqlite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class UserRepository(IUserRepository):
    def __init__(self, db: Session): self.db = db

    def get_row_by_email(self, email: str) -> UserORM | None:
        return self.db.query(UserORM).filter(UserORM.email == email.lower()).first()

    def get_row(self, user_id: str) -> UserORM | None:
        return self.db.query(UserORM).filter(UserORM.id == user_id).first()

    def get_by_email(self, email: str) -> User | None:
        row = self.get_row_by_email(email)
        return to_domain(row) if row else None

    def get_by_id(self, user_id: str) -> User | None:
        row = self.get_row(user_id)
        return to_domain(row) if row else None

    def create(self, email: str, password_hash: str, full_name: str | None = None,
               confirmed: bool = True) -> User:
        row = UserORM(
            email=email.lower(),
            password_hash=password_hash,
            full_name=full_name,
            email_confirmed_at=datetime.now(timezone.utc) if confirmed else None,
        )
        self.db.add(row); self.db.commit(); self.db.refresh(row)
        return to_domain(row)

    def set_password(self, row: UserORM, password_hash: str) -> None:
        row.password_hash = password_hash
        self.db.commit()

    def confirm_email(self, row: UserORM) -> User:
        if row.email_confirmed_at is None:
            row.email_confirmed_at = datetime.now(timezone.utc)
            self.db.commit(); self.db.refresh(row)
        return to_domain(row)

    def recovery_sent_recently(self, row: UserORM, interval_seconds: int) -> bool:
        if row.recovery_sent_at is None:
            return False
        elapsed = datetime.now(timezone.utc) - _aware(row.recovery_sent_at)
        return elapsed < timedelta(seconds=interval_seconds)

    def mark_recovery_sent(self, row: UserORM) -> None:
        row.recovery_sent_at = datetime.now(timezone.utc)
        self.db.commit()


class RefreshTokenRepository:
    def __init__(self, db: Session): self.db = db

    def issue(self, user_id: str) -> str:
        token = new_refresh_token()
        expires_at = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_DAYS)
        self.db.add(RefreshTokenORM(token=token, user_id=user_id, expires_at=expires_at))
        self.db.commit()
        return token

    def consume(self, token: str) -> str | None:
        """Revokes a live refresh token and returns its user id; None if unusable."""
        row = self.db.query(RefreshTokenORM).filter(RefreshTokenORM.token == token).first()
        if not row or row.revoked or _aware(row.expires_at) <= datetime.now(timezone.utc):
            return None
        row.revoked = True
        self.db.commit()
        return row.user_id

    def revoke_all(self, user_id: str) -> int:
        count = (self.db.query(RefreshTokenORM)
                 .filter(RefreshTokenORM.user_id == user_id, RefreshTokenORM.revoked.is_(False))
                 .update({RefreshTokenORM.revoked: True}, synchronize_session=False))
        self.db.commit()
        return count
