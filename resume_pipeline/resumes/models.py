"""Data models for resume records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ResumeStatus(str, Enum):
    """Processing status of a resume.

    ``queued -> processing -> completed | failed``; ``queued`` is only
    reachable through the deferred upload path.
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in {ResumeStatus.COMPLETED, ResumeStatus.FAILED}


@dataclass(frozen=True)
class ResumeIssue:
    """A single finding reported by the optimisation engine."""

    type: str
    message: str
    severity: str = "medium"

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "message": self.message, "severity": self.severity}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResumeIssue:
        return cls(
            type=str(data.get("type", "")),
            message=str(data.get("message", "")),
            severity=str(data.get("severity", "medium")),
        )


@dataclass
class Resume:
    """A persisted resume and its optimisation results.

    Attributes:
        id: Unique identifier of the resume.
        user_id: Owner of the resume.
        file_name: Name of the uploaded file.
        status: Current processing status.
        created_at: When the upload was accepted.
        updated_at: When the record last changed.
        original_text: Text extracted from the upload (empty while queued).
        original_file_name: File name as supplied by the client.
        improved_text: Rewritten resume text, once completed.
        ats_score: ATS compatibility score (0-100).
        keywords_score: Keyword coverage score (0-10).
        formatting_score: Formatting quality score (0-10).
        issues: Ordered findings from the optimisation engine.
        content_hash: Fingerprint of the original text.
        credit_charged: Whether a credit was deducted for this resume.
        duplicate_of: Resume whose results this record mirrors.
        error_message: Failure marker set when processing fails.
    """

    id: str
    user_id: str
    file_name: str
    status: ResumeStatus
    created_at: datetime
    updated_at: datetime
    original_text: str = ""
    original_file_name: str | None = None
    improved_text: str | None = None
    ats_score: int | None = None
    keywords_score: int | None = None
    formatting_score: int | None = None
    issues: list[ResumeIssue] = field(default_factory=list)
    content_hash: str | None = None
    credit_charged: bool = False
    duplicate_of: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the record to a dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "file_name": self.file_name,
            "original_file_name": self.original_file_name,
            "status": self.status.value,
            "original_text": self.original_text,
            "improved_text": self.improved_text,
            "ats_score": self.ats_score,
            "keywords_score": self.keywords_score,
            "formatting_score": self.formatting_score,
            "issues": [issue.to_dict() for issue in self.issues],
            "content_hash": self.content_hash,
            "credit_charged": self.credit_charged,
            "duplicate_of": self.duplicate_of,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def to_view(self, *, include_improved_text: bool) -> ResumeView:
        """Project the record for a client.

        Args:
            include_improved_text: Whether the viewer may see the rewrite.

        Returns:
            The client-facing view of this resume.
        """
        return ResumeView(
            id=self.id,
            user_id=self.user_id,
            file_name=self.file_name,
            status=self.status,
            original_text=self.original_text,
            improved_text=self.improved_text if include_improved_text else None,
            ats_score=self.ats_score,
            keywords_score=self.keywords_score,
            formatting_score=self.formatting_score,
            issues=list(self.issues),
            error_message=self.error_message,
            created_at=self.created_at,
            updated_at=self.updated_at,
            requires_upgrade=(
                not include_improved_text and self.status == ResumeStatus.COMPLETED
            ),
        )


@dataclass(frozen=True)
class ResumeView:
    """Client-facing projection of a resume.

    ``improved_text`` is withheld when the viewer's plan does not include
    it; scores and issues are always present.
    """

    id: str
    user_id: str
    file_name: str
    status: ResumeStatus
    original_text: str
    improved_text: str | None
    ats_score: int | None
    keywords_score: int | None
    formatting_score: int | None
    issues: list[ResumeIssue]
    error_message: str | None
    created_at: datetime
    updated_at: datetime
    requires_upgrade: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "fileName": self.file_name,
            "status": self.status.value,
            "originalText": self.original_text,
            "improvedText": self.improved_text,
            "atsScore": self.ats_score,
            "keywordsScore": self.keywords_score,
            "formattingScore": self.formatting_score,
            "issues": [issue.to_dict() for issue in self.issues],
            "errorMessage": self.error_message,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "requiresUpgrade": self.requires_upgrade,
        }


@dataclass(frozen=True)
class DuplicateNotFound:
    """No earlier resume carries this content hash."""


@dataclass(frozen=True)
class DuplicateFound:
    """An earlier, still valid resume carries this content hash."""

    resume: Resume


@dataclass(frozen=True)
class StaleIndex:
    """The hash index points at a resume that was deleted or failed."""

    resume_id: str


DuplicateCheck = DuplicateNotFound | DuplicateFound | StaleIndex
