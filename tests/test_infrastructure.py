from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest
from jose import JWTError

from edumynt.config import settings
from edumynt.infrastructure.mailer import Mailer
from edumynt.infrastructure.security import (
    RECOVERY, SIGNUP, PasswordHasher, create_access_token, create_action_token,
    decode_access_token, decode_action_token,
)


def test_password_hasher():
    hasher = PasswordHasher()
    hashed = hasher.hash("secret123")
    assert hashed != "secret123"
    assert hasher.verify("secret123", hashed)
    assert not hasher.verify("other", hashed)


def test_access_token_claims():
    token, exp = create_access_token(sub="user-1", email="a@example.com")
    claims = decode_access_token(token)
    assert claims["sub"] == "user-1"
    assert claims["email"] == "a@example.com"
    assert claims["type"] == "access"
    assert claims["exp"] == int(exp.timestamp())


def test_action_token_cannot_be_used_as_access_token():
    token = create_action_token("user-1", RECOVERY)
    assert decode_action_token(token, RECOVERY) == "user-1"
    with pytest.raises(JWTError):
        decode_access_token(token)
    with pytest.raises(JWTError):
        decode_action_token(token, SIGNUP)


def test_mailer_builds_templates():
    message = Mailer("console").build("recovery", "a@example.com", "http://x/reset?token=t")
    assert message["To"] == "a@example.com"
    assert message["Subject"] == "Reset your Edumynt password"
    assert "http://x/reset?token=t" in message.get_content()
    with pytest.raises(ValueError):
        Mailer("console").build("welcome", "a@example.com", "http://x")


def test_smtp_mode_without_host_falls_back_to_console(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", None)
    assert Mailer("smtp").mode == "console"


@pytest.mark.asyncio
async def test_console_mailer_does_not_touch_smtp():
    with patch("edumynt.infrastructure.mailer.aiosmtplib.send", new=AsyncMock()) as send:
        assert await Mailer("console").send_password_reset("a@example.com", "http://x") is True
    send.assert_not_awaited()


@pytest.mark.asyncio
async def test_smtp_mailer_sends_and_reports_failures(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    mailer = Mailer("smtp")

    with patch("edumynt.infrastructure.mailer.aiosmtplib.send", new=AsyncMock()) as send:
        assert await mailer.send_signup_confirmation("a@example.com", "http://x/verify") is True
    assert send.await_args.kwargs["hostname"] == "smtp.example.com"

    failing = AsyncMock(side_effect=aiosmtplib.SMTPException("relay refused"))
    with patch("edumynt.infrastructure.mailer.aiosmtplib.send", new=failing):
        assert await mailer.send_signup_confirmation("a@example.com", "http://x/verify") is False


def test_metrics_endpoint(client, seeded):
    client.get("/")
    r = client.get("/metrics")
    assert r.status_code == 200
    body = r.text
    assert "http_requests_total" in body
    assert 'db_queries_total{operation="courses.published"}' in body


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_run_starts_uvicorn_with_settings():
    from edumynt.main import run

    with patch("uvicorn.run") as serve:
        run()
    serve.assert_called_once_with(
        "edumynt.main:app", host=settings.HOST, port=settings.PORT, reload=settings.RELOAD,
    )
