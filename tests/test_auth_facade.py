from unittest.mock import MagicMock

import pytest

from edumynt.application import auth
from edumynt.application.errors import AuthApiError


@pytest.mark.parametrize("wire,expected", [
    ("Invalid login credentials",
     "Invalid email or password. Please check your credentials and try again."),
    ("Email not confirmed",
     "Please check your email and click the confirmation link before signing in."),
    ("User already registered",
     "An account with this email already exists. Please sign in instead."),
    ("Password should be at least 6 characters",
     "Password must be at least 6 characters long."),
    ("Unable to validate email address: invalid format",
     "Please enter a valid email address."),
    ("Signup is disabled",
     "Account registration is currently disabled. Please contact support."),
    ("Email rate limit exceeded",
     "Too many emails sent. Please wait a few minutes before trying again."),
])
def test_known_messages_are_translated(wire, expected):
    assert auth.get_error_message(wire) == expected


def test_unknown_message_passes_through():
    assert auth.get_error_message("Something odd happened") == "Something odd happened"


def test_empty_message_falls_back_to_generic():
    assert auth.get_error_message("") == auth.UNEXPECTED_ERROR
    assert auth.get_error_message(None) == auth.UNEXPECTED_ERROR


def test_sign_in_maps_backend_error():
    backend = MagicMock()
    backend.sign_in_with_password.side_effect = AuthApiError("Invalid login credentials")

    result = auth.sign_in(backend, "a@example.com", "wrong")

    assert result.success is False
    assert result.error == "Invalid email or password. Please check your credentials and try again."
    backend.sign_in_with_password.assert_called_once_with("a@example.com", "wrong")


def test_unexpected_exception_never_escapes():
    backend = MagicMock()
    backend.sign_up.side_effect = RuntimeError("connection reset")

    result = auth.sign_up(backend, "a@example.com", "secret123", "Ann")

    assert result.success is False
    assert result.error == auth.UNEXPECTED_ERROR


def test_success_carries_backend_data():
    backend = MagicMock()
    backend.reset_password_for_email.return_value = None

    result = auth.reset_password(backend, "a@example.com", "http://localhost:8000/auth/reset-password")

    assert result.success is True
    assert result.error is None
    backend.reset_password_for_email.assert_called_once_with(
        "a@example.com", "http://localhost:8000/auth/reset-password"
    )


def test_sign_out_is_not_retried():
    backend = MagicMock()
    backend.sign_out.side_effect = AuthApiError("Auth session missing!", status=401)

    result = auth.sign_out(backend, None)

    assert result.success is False
    assert result.error == "Auth session missing!"
    assert backend.sign_out.call_count == 1


@pytest.mark.parametrize("operation,method,args", [
    (auth.sign_up, "sign_up", ("a@example.com", "secret123", "Ann")),
    (auth.sign_in, "sign_in_with_password", ("a@example.com", "secret123")),
    (auth.sign_out, "sign_out", ("token",)),
    (auth.reset_password, "reset_password_for_email", ("a@example.com",)),
])
@pytest.mark.parametrize("error,expected", [
    (AuthApiError("Email rate limit exceeded", status=429),
     "Too many emails sent. Please wait a few minutes before trying again."),
    (ValueError("boom"), auth.UNEXPECTED_ERROR),
])
def test_every_operation_returns_failure_instead_of_raising(operation, method, args, error, expected):
    backend = MagicMock()
    getattr(backend, method).side_effect = error

    result = operation(backend, *args)

    assert result.success is False
    assert result.error == expected
