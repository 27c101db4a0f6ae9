"""Upload-to-processing pipeline.

Public API:
- UploadOrchestrator: Direct and deferred upload entry points
- WorkerLoop: Consumer of the upload job queue
- run_workers: Run several worker loops on one queue
- ResumeProcessor: Completion and failure transitions with refunds
- build_app: Wire every component for one process
- PipelineError and subclasses: Caller-visible errors
"""

from resume_pipeline.pipeline.app import PipelineApp, build_app
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
from resume_pipeline.pipeline.orchestrator import UploadOrchestrator
from resume_pipeline.pipeline.processing import ResumeProcessor
from resume_pipeline.pipeline.rate_limit import SlidingWindowRateLimiter
from resume_pipeline.pipeline.worker import WorkerLoop, WorkerStats, run_workers

__all__ = [
    "AuthenticationError",
    "EngineFailedError",
    "ForbiddenError",
    "InsufficientCreditsError",
    "PipelineApp",
    "PipelineError",
    "RateLimitError",
    "ResumeNotFoundError",
    "ResumeProcessor",
    "SlidingWindowRateLimiter",
    "UploadOrchestrator",
    "UploadOutcome",
    "UploadParseError",
    "ValidationError",
    "WorkerLoop",
    "WorkerStats",
    "build_app",
    "run_workers",
]
