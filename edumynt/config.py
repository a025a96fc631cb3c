from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./edumynt.db"
    SECRET_KEY: str = "dev-secret-edumynt"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_MINUTES: int = 60
    REFRESH_TOKEN_DAYS: int = 30
    ACTION_TOKEN_MINUTES: int = 60  # recovery / signup confirmation links
    LOG_LEVEL: str = "INFO"
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    RELOAD: bool = False

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    SIGNIN_RATE_LIMIT: str = "10/minute"
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    SIGNUP_ENABLED: bool = True
    REQUIRE_EMAIL_CONFIRMATION: bool = False
    RECOVERY_EMAIL_INTERVAL_SECONDS: int = 60
    SITE_URL: str = "http://localhost:8000"

    EMAIL_MODE: str = "console"  # console | smtp
    EMAIL_FROM: str = "Edumynt <noreply@edumynt.app>"
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 465
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None

    SESSION_COOKIE_NAME: str = "edumynt-auth-token"
    REFRESH_COOKIE_NAME: str = "edumynt-refresh-token"
    COOKIE_SECURE: bool = False
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    SESSION_REFRESH_LEAD_SECONDS: int = 300  # 5 minutes

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
