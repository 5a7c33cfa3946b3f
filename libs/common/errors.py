"""Operational error taxonomy shared by the API and the libraries.

Every error the service raises on purpose is an ``APIError`` carrying an
HTTP-style status code. Constructors always take ``(message, status_code)``.
"""

from __future__ import annotations

from typing import Any

from fastapi import status


class APIError(Exception):
    """Uniform operational error with an HTTP status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.metadata = metadata or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error_code": self.error_code, "message": self.message}
        if self.metadata:
            body["metadata"] = self.metadata
        return body

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class ValidationError(APIError):
    """Required input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class NotFound(APIError):
    """Conversation is absent, owned by someone else, or deleted."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class AllProvidersExhausted(APIError):
    """Every model in the fallback list failed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "ALL_PROVIDERS_EXHAUSTED"

    def __init__(self, message: str, last_error: BaseException | None = None, status_code: int | None = None):
        super().__init__(message, status_code)
        self.last_error = last_error


class ProviderNotConfiguredError(AllProvidersExhausted):
    """No API key is configured, so no model can be tried."""

    error_code = "PROVIDER_NOT_CONFIGURED"


class PersistenceError(APIError):
    """The document store failed to read or write."""

    error_code = "PERSISTENCE_ERROR"


class InternalError(APIError):
    """Anything unexpected, wrapped at the orchestrator boundary."""

    error_code = "INTERNAL_ERROR"
