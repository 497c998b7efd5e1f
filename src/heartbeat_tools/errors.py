"""Heartbeat tool error hierarchy.

Every failure that can leave a mode handler is a HeartbeatError subclass by the
time it reaches the dispatch boundary, where it is rendered as ``{"error": ...}``.

Error Categories:
- ValidationError: a required parameter is missing (never reaches the network)
- NotFoundError: a lookup matched nothing; may carry suggestions
- AmbiguousError: a lookup matched several records; carries all candidates
- RateLimitedError: upstream kept answering 429 after every retry
- UnauthorizedError: upstream rejected the API key
- UpstreamError: any other non-2xx upstream response
- RequestTimeoutError: the transport timed out
- UnexpectedError: everything else
"""

from __future__ import annotations

import json
from typing import Any

import httpx


class HeartbeatError(Exception):
    """Base exception for all Heartbeat tool errors."""

    error_code: str = "HEARTBEAT_ERROR"
    retry_allowed: bool = False

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert error to the tool's error envelope."""
        return {"error": self.message}

    def __str__(self) -> str:
        return self.message


class ValidationError(HeartbeatError):
    """A required parameter for the selected mode or action is missing."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []

    @classmethod
    def missing(cls, *fields: str) -> ValidationError:
        """Build the ``Required: 'a' and 'b'`` message for missing fields."""
        quoted = [f"'{f}'" for f in fields]
        if len(quoted) > 1:
            listed = ", ".join(quoted[:-1]) + f" and {quoted[-1]}"
        else:
            listed = quoted[0] if quoted else ""
        return cls(f"Required: {listed}", fields=list(fields))


class NotFoundError(HeartbeatError):
    """Zero matches for a lookup."""

    error_code = "NOT_FOUND"

    def __init__(self, message: str, *, suggestions: list[str] | None = None):
        super().__init__(message)
        self.suggestions = suggestions or []


class AmbiguousError(HeartbeatError):
    """Several equally valid matches; the caller must disambiguate."""

    error_code = "AMBIGUOUS"

    def __init__(self, message: str, *, candidates: list[str] | None = None):
        super().__init__(message)
        self.candidates = candidates or []


class RateLimitedError(HeartbeatError):
    error_code = "RATE_LIMITED"
    retry_allowed = True


class UnauthorizedError(HeartbeatError):
    error_code = "UNAUTHORIZED"


class UpstreamError(HeartbeatError):
    """Non-2xx upstream response outside the other categories."""

    error_code = "UPSTREAM_ERROR"

    def __init__(self, message: str, *, status_code: int, detail: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class RequestTimeoutError(HeartbeatError):
    error_code = "TIMEOUT"
    retry_allowed = True


class UnexpectedError(HeartbeatError):
    error_code = "UNEXPECTED_ERROR"


def response_detail(response: httpx.Response) -> str:
    """Best-effort human-readable detail from an error response body."""
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        return response.text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return json.dumps(body)


def classify_error(exc: Exception) -> HeartbeatError:
    """Map a transport or HTTP failure onto the error taxonomy.

    HeartbeatError instances pass through unchanged.
    """
    if isinstance(exc, HeartbeatError):
        return exc

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        detail = response_detail(exc.response)
        match status:
            case 400:
                return UpstreamError(
                    f"Validation error: {detail}", status_code=status, detail=detail
                )
            case 401:
                return UnauthorizedError(
                    "API key invalid or expired. Check HEARTBEAT_API_KEY.", cause=exc
                )
            case 404:
                return NotFoundError(f"Not found: {detail}")
            case 429:
                return RateLimitedError(
                    "Rate limit exceeded after retries. Wait and try again.", cause=exc
                )
            case _:
                return UpstreamError(
                    f"API error {status}: {detail}", status_code=status, detail=detail
                )

    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeoutError("Request timed out. Try again.", cause=exc)

    return UnexpectedError(f"Unexpected error: {exc}", cause=exc)
