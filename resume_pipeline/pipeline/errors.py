"""Errors surfaced by the upload pipeline to its callers.

Each error carries the HTTP status and machine-readable code the outer API
layer returns, so that layer only has to call ``to_dict()``.
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for caller-visible pipeline errors."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        """Render the error as a response body."""
        return {"error": self.code, "message": self.message}


class AuthenticationError(PipelineError):
    """The caller could not be resolved to a user."""

    status_code = 401
    code = "not_authenticated"


class ForbiddenError(PipelineError):
    """The caller may not perform the operation."""

    status_code = 403
    code = "forbidden"


class ValidationError(PipelineError):
    """A request field is missing or malformed."""

    status_code = 400
    code = "invalid_request"


class UploadParseError(PipelineError):
    """The uploaded file could not be turned into text."""

    status_code = 400
    code = "parse_failed"


class InsufficientCreditsError(PipelineError):
    """The user has no credits left."""

    status_code = 403
    code = "no_credits"

    def __init__(
        self, message: str = "No credits remaining. Please purchase more credits."
    ):
        super().__init__(message)


class RateLimitError(PipelineError):
    """Too many uploads within the rate window."""

    status_code = 429
    code = "rate_limited"

    def __init__(self, message: str, retry_after: float):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["retryAfter"] = max(1, int(round(self.retry_after)))
        return body


class ResumeNotFoundError(PipelineError):
    """The resume does not exist or is not visible to the caller."""

    status_code = 404
    code = "not_found"

    def __init__(self, resume_id: str):
        super().__init__(f"Resume not found: {resume_id}")
        self.resume_id = resume_id


class EngineFailedError(PipelineError):
    """Inline optimisation failed; the record is failed and the credit refunded."""

    status_code = 500
    code = "optimization_failed"

    def __init__(
        self, message: str, resume_id: str, original_error: Exception | None = None
    ):
        super().__init__(message, original_error)
        self.resume_id = resume_id

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["resumeId"] = self.resume_id
        return body
