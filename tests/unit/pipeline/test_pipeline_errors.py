"""Tests for caller-visible pipeline errors and outcomes."""

from datetime import UTC, datetime

import pytest

from resume_pipeline.pipeline.errors import (
    AuthenticationError,
    EngineFailedError,
    ForbiddenError,
    InsufficientCreditsError,
    PipelineError,
    RateLimitError,
    ResumeNotFoundError,
    UploadParseError,
    ValidationError,
)
from resume_pipeline.pipeline.models import UploadOutcome
from resume_pipeline.resumes.models import ResumeStatus


class TestPipelineErrors:
    """Test status codes and response bodies."""

    @pytest.mark.parametrize(
        ("error", "status_code", "code"),
        [
            (AuthenticationError("x"), 401, "not_authenticated"),
            (ForbiddenError("x"), 403, "forbidden"),
            (ValidationError("x"), 400, "invalid_request"),
            (UploadParseError("x"), 400, "parse_failed"),
            (InsufficientCreditsError(), 403, "no_credits"),
            (ResumeNotFoundError("r1"), 404, "not_found"),
        ],
    )
    def test_status_and_code(self, error, status_code, code):
        assert isinstance(error, PipelineError)
        assert error.status_code == status_code
        assert error.to_dict()["error"] == code

    def test_insufficient_credits_default_message(self):
        body = InsufficientCreditsError().to_dict()
        assert body == {
            "error": "no_credits",
            "message": "No credits remaining. Please purchase more credits.",
        }

    def test_rate_limit_reports_whole_seconds(self):
        error = RateLimitError("slow down", retry_after=12.4)
        assert error.status_code == 429
        assert error.to_dict()["retryAfter"] == 12

    def test_rate_limit_retry_after_is_at_least_one(self):
        assert RateLimitError("slow down", retry_after=0.01).to_dict()["retryAfter"] == 1

    def test_engine_failed_carries_resume_id(self):
        cause = RuntimeError("boom")
        error = EngineFailedError("failed", resume_id="r9", original_error=cause)

        assert error.original_error is cause
        assert error.to_dict() == {
            "error": "optimization_failed",
            "message": "failed",
            "resumeId": "r9",
        }


class TestUploadOutcome:
    """Test outcome serialization."""

    def test_minimal_outcome(self):
        outcome = UploadOutcome(resume_id="r1", status=ResumeStatus.COMPLETED)
        assert outcome.to_dict() == {
            "resumeId": "r1",
            "status": "completed",
            "isDuplicate": False,
        }

    def test_duplicate_outcome(self):
        created = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        outcome = UploadOutcome(
            resume_id="r1",
            status=ResumeStatus.COMPLETED,
            is_duplicate=True,
            message="This resume was already uploaded",
            original_upload_date=created,
        )

        data = outcome.to_dict()
        assert data["isDuplicate"] is True
        assert data["message"] == "This resume was already uploaded"
        assert data["originalUploadDate"] == created.isoformat()
