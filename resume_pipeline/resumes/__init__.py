"""Resume records and duplicate detection.

Public API:
- ResumeService: Duplicate detection, fingerprint registration, projection
- ResumeRepository: Database repository for resumes
- Resume: Data model for resume records
- ResumeStatus: Enum for resume status values
- ResumeView: Client-facing projection of a resume
"""

from resume_pipeline.resumes.models import (
    DuplicateCheck,
    DuplicateFound,
    DuplicateNotFound,
    Resume,
    ResumeIssue,
    ResumeStatus,
    ResumeView,
    StaleIndex,
)
from resume_pipeline.resumes.repository import ResumeRepository
from resume_pipeline.resumes.service import ResumeService

__all__ = [
    "DuplicateCheck",
    "DuplicateFound",
    "DuplicateNotFound",
    "Resume",
    "ResumeIssue",
    "ResumeRepository",
    "ResumeService",
    "ResumeStatus",
    "ResumeView",
    "StaleIndex",
]
