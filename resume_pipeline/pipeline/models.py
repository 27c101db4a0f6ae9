"""Data models returned by the upload pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from resume_pipeline.resumes.models import ResumeStatus


@dataclass(frozen=True)
class UploadOutcome:
    """Result of accepting an upload on either path."""

    resume_id: str
    status: ResumeStatus
    is_duplicate: bool = False
    message: str | None = None
    original_upload_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "resumeId": self.resume_id,
            "status": self.status.value,
            "isDuplicate": self.is_duplicate,
        }
        if self.message is not None:
            data["message"] = self.message
        if self.original_upload_date is not None:
            data["originalUploadDate"] = self.original_upload_date.isoformat()
        return data
