"""
Error types shared by the client, service and registry layers.

Every error carries a machine-readable ``code`` and renders to the
structured payload returned from tools via ``to_dict()``.
"""

from __future__ import annotations

from typing import Any


class BacktickError(Exception):
    """Base class for errors surfaced to tool callers."""

    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message}}


class ValidationError(BacktickError):
    """Caller input is malformed or does not identify what to query."""

    default_code = "VALIDATION_ERROR"


class ConfigurationError(BacktickError):
    """Environment configuration is missing or invalid."""

    default_code = "CONFIGURATION_ERROR"


class IntegrationRegistrationError(BacktickError):
    """Raised by an integration while binding its capabilities."""

    default_code = "REGISTRATION_ERROR"


class ClassifiedError(BacktickError):
    """Terminal failure of an upstream call.

    Args:
        message: Human-readable message, from the upstream payload when present
        status_code: HTTP status of the last response, None if none was received
        code: Upstream error code, or a generic code for the failure kind
    """

    default_code = "HTTP_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ):
        super().__init__(message, code)
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.status_code is not None:
            payload["error"]["status_code"] = self.status_code
        return payload


class UpstreamClientError(ClassifiedError):
    """4xx response. The request itself is wrong; retrying cannot help."""


class UpstreamServerError(ClassifiedError):
    """5xx response still failing after the retry policy was exhausted."""


class UpstreamNetworkError(ClassifiedError):
    """No response was received (connect failure, timeout, broken stream)."""

    default_code = "NETWORK_ERROR"


class NotFoundError(ClassifiedError):
    """A referenced identifier is absent from a freshly fetched list."""

    default_code = "NOT_FOUND"
