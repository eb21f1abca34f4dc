"""
Transport-level exceptions raised by `LinearClient`.

These are structured so the CLI can classify failures without sniffing messages.
"""

from __future__ import annotations

from typing import Any


class LinearError(Exception):
    """Base class for every error raised by the API client."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_body: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_body = response_body

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"[{self.status_code}] {self.message}"
        return self.message


class AuthenticationError(LinearError):
    """The API key is missing, malformed, or revoked (HTTP 401/403)."""


class NotFoundError(LinearError):
    """A lookup by identifier returned nothing."""


class RateLimitError(LinearError):
    """HTTP 429 or a RATELIMITED GraphQL error."""

    def __init__(
        self,
        message: str,
        *,
        retry_after: float | None = None,
        status_code: int | None = 429,
        response_body: Any | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, response_body=response_body)
        self.retry_after = retry_after


class ServerError(LinearError):
    """HTTP 5xx from the API."""


class NetworkError(LinearError):
    """The request never produced an HTTP response (DNS, connect, read timeout)."""


class GraphQLError(LinearError):
    """The API answered 200 with an `errors` array."""

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        status_code: int | None = None,
        response_body: Any | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, response_body=response_body)
        self.errors = errors or []
