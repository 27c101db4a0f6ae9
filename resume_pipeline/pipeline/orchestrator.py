"""Upload orchestration: the entry points that accept resumes.

Two paths create resume records:

- Direct: the file bytes arrive with the request. The file is parsed,
  deduplicated and charged, then optimised inline before returning.
- Deferred: the client has already written the file to the object store
  through a presigned URL. A ``queued`` placeholder is created and an
  UploadJob is handed to the worker.

Both paths keep the credit invariant: a credit is deducted at most once per
resume, and a resume that ends ``failed`` has its credit returned.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from pathlib import PurePosixPath

from resume_pipeline.accounts.ledger import CreditLedger
from resume_pipeline.accounts.models import User
from resume_pipeline.accounts.repository import UserRepository
from resume_pipeline.config.settings import Settings
from resume_pipeline.jobs.base import JobQueue, QueueUnavailableError
from resume_pipeline.jobs.models import UploadJob
from resume_pipeline.optimizer.engine import EngineError
from resume_pipeline.parsing.parser import (
    SUPPORTED_MIME_TYPES,
    ParseError,
    parse_file,
)
from resume_pipeline.pipeline.errors import (
    AuthenticationError,
    EngineFailedError,
    ForbiddenError,
    InsufficientCreditsError,
    ResumeNotFoundError,
    UploadParseError,
    ValidationError,
)
from resume_pipeline.pipeline.models import UploadOutcome
from resume_pipeline.pipeline.processing import ResumeProcessor
from resume_pipeline.pipeline.rate_limit import SlidingWindowRateLimiter
from resume_pipeline.resumes.models import (
    DuplicateFound,
    Resume,
    ResumeStatus,
    ResumeView,
)
from resume_pipeline.resumes.service import ResumeService
from resume_pipeline.storage.object_store import ObjectStore
from resume_pipeline.storage.presign import (
    PresignedUpload,
    build_upload_key,
    user_upload_prefix,
)

logger = logging.getLogger(__name__)


class UploadOrchestrator:
    """Accepts uploads and serves resume records back to their owners."""

    def __init__(
        self,
        *,
        users: UserRepository,
        ledger: CreditLedger,
        resumes: ResumeService,
        processor: ResumeProcessor,
        queue: JobQueue,
        object_store: ObjectStore,
        settings: Settings,
        rate_limiter: SlidingWindowRateLimiter | None = None,
    ) -> None:
        self.users = users
        self.ledger = ledger
        self.resumes = resumes
        self.processor = processor
        self.queue = queue
        self.object_store = object_store
        self.settings = settings
        self.rate_limiter = rate_limiter
        if self.rate_limiter is None:
            self.rate_limiter = SlidingWindowRateLimiter(
                limit=settings.upload_rate_limit,
                window_seconds=settings.upload_rate_window_seconds,
                storage_uri=settings.rate_limit_storage_uri,
            )

    async def _authenticate(self, user_id: str | None) -> User:
        if not user_id:
            raise AuthenticationError("Not authenticated")
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise AuthenticationError("Not authenticated")
        return user

    async def upload_direct(
        self,
        user_id: str | None,
        data: bytes,
        filename: str,
        mime_type: str,
    ) -> UploadOutcome:
        """Accept a file in the request and optimise it inline.

        Args:
            user_id: Authenticated caller.
            data: Raw file bytes.
            filename: Client file name.
            mime_type: Declared MIME type of the file.

        Returns:
            The resume with its stored status, or the earlier resume for a
            duplicate.

        Raises:
            AuthenticationError: Unknown or missing user.
            RateLimitError: Too many uploads in the window.
            ValidationError: Missing file or file name.
            UploadParseError: The file could not be parsed. Nothing is charged.
            InsufficientCreditsError: The user has no credits. Nothing is created.
            EngineFailedError: Optimisation failed. The record is failed and
                the credit refunded.
        """
        user = await self._authenticate(user_id)
        if not data:
            raise ValidationError("No file uploaded")
        if not filename or not filename.strip():
            raise ValidationError("Missing file name")
        # Only well-formed requests count against the window
        self.rate_limiter.check(user.id)

        try:
            text = parse_file(
                data, mime_type, filename, min_length=self.settings.min_text_length
            )
        except ParseError as e:
            raise UploadParseError(str(e), e) from e

        content_hash, duplicate = await self.resumes.detect_duplicate(user, text)
        if isinstance(duplicate, DuplicateFound):
            existing = duplicate.resume
            logger.info(
                "Duplicate upload by user %s matches resume %s", user.id, existing.id
            )
            return UploadOutcome(
                resume_id=existing.id,
                status=existing.status,
                is_duplicate=True,
                message="This resume was already uploaded",
                original_upload_date=existing.created_at,
            )

        if not await self.ledger.try_deduct(user):
            raise InsufficientCreditsError()
        charged = not user.is_exempt

        now = datetime.now(UTC)
        resume = Resume(
            id=str(uuid.uuid4()),
            user_id=user.id,
            file_name=filename,
            original_file_name=filename,
            status=ResumeStatus.PROCESSING,
            original_text=text,
            content_hash=content_hash,
            credit_charged=charged,
            created_at=now,
            updated_at=now,
        )
        try:
            await self.resumes.repository.insert(resume)
        except Exception:
            logger.exception("Failed to create resume record for user %s", user.id)
            if charged:
                await self.ledger.refund(user)
            raise
        await self.resumes.register_content_hash(user.id, content_hash, resume.id)

        try:
            await self.processor.process(resume.id, text, user, charged=charged)
        except EngineError as e:
            raise EngineFailedError(
                "Failed to optimize resume. Your credit has been refunded.",
                resume_id=resume.id,
                original_error=e,
            ) from e

        # The record may have been failed or deleted while the engine ran
        stored = await self.resumes.repository.get_by_id(resume.id)
        if stored is None:
            logger.warning("Resume %s was deleted during optimisation", resume.id)
            return UploadOutcome(
                resume_id=resume.id,
                status=ResumeStatus.FAILED,
                message="Resume was deleted during processing",
            )
        return UploadOutcome(
            resume_id=resume.id,
            status=stored.status,
            message=stored.error_message,
        )

    async def complete_upload(
        self,
        user_id: str | None,
        object_key: str,
        filename: str,
    ) -> UploadOutcome:
        """Register a file already written through a presigned URL.

        Args:
            user_id: Authenticated caller.
            object_key: Key the client uploaded to.
            filename: Client file name.

        Returns:
            The queued placeholder.

        Raises:
            AuthenticationError: Unknown or missing user.
            ValidationError: Missing fields or a key outside the user's prefix.
            QueueUnavailableError: The job could not be enqueued. The
                placeholder is marked failed.
        """
        user = await self._authenticate(user_id)

        if not object_key or not filename or not filename.strip():
            raise ValidationError("Missing required fields: key, fileName")
        if (
            not object_key.startswith(user_upload_prefix(user.id))
            or ".." in PurePosixPath(object_key).parts
        ):
            raise ValidationError("Object key does not belong to this user")

        now = datetime.now(UTC)
        resume = Resume(
            id=str(uuid.uuid4()),
            user_id=user.id,
            file_name=filename,
            original_file_name=filename,
            status=ResumeStatus.QUEUED,
            created_at=now,
            updated_at=now,
        )
        await self.resumes.repository.insert(resume)

        job = UploadJob(
            resume_id=resume.id,
            bucket=self.settings.upload_bucket,
            object_key=object_key,
            filename=filename,
            user_id=user.id,
        )
        try:
            await self.queue.enqueue(job)
        except QueueUnavailableError:
            logger.error("Queue unavailable; failing resume %s", resume.id)
            await self.processor.fail(
                resume.id, user, "queue_unavailable", charged=False
            )
            raise

        logger.info("Queued resume %s for user %s", resume.id, user.id)
        return UploadOutcome(
            resume_id=resume.id,
            status=ResumeStatus.QUEUED,
            message="Upload queued for processing",
        )

    async def presign_upload(
        self, user_id: str | None, filename: str, content_type: str
    ) -> PresignedUpload:
        """Issue a presigned PUT credential for a direct-to-storage upload.

        Raises:
            AuthenticationError: Unknown or missing user.
            ValidationError: Missing file name or unsupported content type.
        """
        user = await self._authenticate(user_id)

        if not filename or not filename.strip():
            raise ValidationError("Missing file name")
        base_type = (content_type or "").split(";", 1)[0].strip().lower()
        if base_type not in SUPPORTED_MIME_TYPES:
            raise ValidationError(
                f"Unsupported content type: {content_type or 'unknown'}"
            )

        key = build_upload_key(user.id, filename)
        return self.object_store.presign_put(
            self.settings.upload_bucket,
            key,
            content_type,
            self.settings.presign_expires_seconds,
        )

    async def get_resume(
        self,
        resume_id: str,
        viewer_id: str | None,
        include_improved_text: bool | None = None,
    ) -> ResumeView:
        """Return a resume projected for its viewer.

        Resumes owned by someone else are reported as missing unless the
        viewer is an exempt account.

        Raises:
            AuthenticationError: Unknown or missing viewer.
            ResumeNotFoundError: No such resume visible to the viewer.
        """
        viewer = await self._authenticate(viewer_id)
        resume = await self.resumes.get_resume(resume_id)
        if resume is None or (resume.user_id != viewer.id and not viewer.is_exempt):
            raise ResumeNotFoundError(resume_id)
        return self.resumes.project(resume, viewer, include_improved_text)

    async def list_resumes(self, user_id: str | None) -> list[ResumeView]:
        """List the caller's resumes, newest first."""
        user = await self._authenticate(user_id)
        resumes = await self.resumes.list_resumes(user.id)
        return [self.resumes.project(resume, user) for resume in resumes]

    async def delete_resume(self, resume_id: str, actor_id: str | None) -> None:
        """Delete a resume record (exempt accounts only).

        The content-hash index entry is kept and becomes stale.

        Raises:
            AuthenticationError: Unknown or missing actor.
            ForbiddenError: The actor is not an exempt account.
            ResumeNotFoundError: No such resume.
        """
        actor = await self._authenticate(actor_id)
        if not actor.is_exempt:
            raise ForbiddenError("Only administrators can delete resumes")
        if not await self.resumes.repository.delete(resume_id):
            raise ResumeNotFoundError(resume_id)
        logger.info("Resume %s deleted by %s", resume_id, actor.id)
