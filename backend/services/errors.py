# backend/services/errors.py
from typing import Iterable, Optional


class PhysioError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PhysioError):
    """Required input missing or malformed. Raised before any network call."""


class MissingFieldError(ValidationError):
    def __init__(self, fields: Iterable[str], message: Optional[str] = None):
        self.fields = list(fields)
        super().__init__(message or f"Missing required field(s): {', '.join(self.fields)}")


class UpstreamError(PhysioError):
    """The scheduling API answered with a non-success status or an unexpected body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(UpstreamError):
    """Network failure or timeout talking to the scheduling API."""


class UnhandledFunctionError(PhysioError):
    """Agent called a function that isn't registered. Never raised by the dispatcher."""
