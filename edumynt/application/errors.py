class AuthApiError(Exception):
    """Error raised by the auth backend; `message` is the wire-level text."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.message = message
        self.status = status


class DecodeError(ValueError):
    """A payload did not match the expected record shape."""
