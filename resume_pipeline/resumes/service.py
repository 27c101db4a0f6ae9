"""Business logic service for resume records.

This module provides the ResumeService class which handles:
- Duplicate detection using content fingerprints
- Registration of fingerprints for new resumes
- Plan-gated projection of resumes for clients
"""

import logging

from resume_pipeline.accounts.models import Plan, User
from resume_pipeline.resumes.fingerprint import compute_content_hash
from resume_pipeline.resumes.models import (
    DuplicateCheck,
    DuplicateFound,
    DuplicateNotFound,
    Resume,
    ResumeStatus,
    ResumeView,
    StaleIndex,
)
from resume_pipeline.resumes.repository import ResumeRepository

logger = logging.getLogger(__name__)

# Plans that may read the rewritten resume text
IMPROVED_TEXT_PLANS = frozenset({Plan.BASIC, Plan.PRO, Plan.PREMIUM, Plan.ADMIN})


def can_view_improved_text(user: User | None) -> bool:
    """Default plan policy: free accounts see scores and issues only."""
    return user is not None and user.plan in IMPROVED_TEXT_PLANS


class ResumeService:
    """Coordinates fingerprinting and the resume repository.

    Duplicate detection is best-effort: two simultaneous uploads of the same
    text may both pass the check before either is registered.
    """

    def __init__(self, repository: ResumeRepository):
        """Initialize the service.

        Args:
            repository: The ResumeRepository instance for database access.
        """
        self.repository = repository

    async def check_duplicate(self, user_id: str, content_hash: str) -> DuplicateCheck:
        """Look up an earlier resume with the same content hash.

        Args:
            user_id: Owner of the upload.
            content_hash: Fingerprint of the uploaded text.

        Returns:
            DuplicateFound with the earlier resume if it still exists and has
            not failed, StaleIndex if the index points at a deleted or failed
            resume, DuplicateNotFound otherwise.
        """
        resume_id = await self.repository.get_indexed_resume_id(user_id, content_hash)
        if resume_id is None:
            return DuplicateNotFound()

        resume = await self.repository.get_by_id(resume_id)
        if resume is None or resume.status == ResumeStatus.FAILED:
            return StaleIndex(resume_id=resume_id)

        return DuplicateFound(resume=resume)

    async def detect_duplicate(
        self, user: User, text: str
    ) -> tuple[str | None, DuplicateCheck]:
        """Fingerprint extracted text and check it against the user's resumes.

        Exempt users are never matched, although their fingerprint is still
        computed so it can be stored. Hashing or lookup failures are logged
        and reported as "not a duplicate" without a fingerprint.

        Args:
            user: Owner of the upload.
            text: Extracted resume text.

        Returns:
            A ``(content_hash, outcome)`` pair.
        """
        try:
            content_hash = compute_content_hash(text)
            if user.is_exempt:
                return content_hash, DuplicateNotFound()
            outcome = await self.check_duplicate(user.id, content_hash)
        except Exception as e:
            logger.warning("Duplicate detection failed for user %s: %s", user.id, e)
            return None, DuplicateNotFound()

        if isinstance(outcome, StaleIndex):
            logger.info(
                "Content hash for user %s points at stale resume %s; treating as new",
                user.id,
                outcome.resume_id,
            )
        return content_hash, outcome

    async def register_content_hash(
        self, user_id: str, content_hash: str | None, resume_id: str
    ) -> None:
        """Index a resume's fingerprint so later uploads can find it.

        Failures are logged; an unindexed resume only weakens deduplication.
        """
        if content_hash is None:
            return
        try:
            await self.repository.index_content_hash(user_id, content_hash, resume_id)
        except Exception as e:
            logger.warning(
                "Failed to index content hash for resume %s: %s", resume_id, e
            )

    async def get_resume(self, resume_id: str) -> Resume | None:
        """Get a resume by id."""
        return await self.repository.get_by_id(resume_id)

    async def list_resumes(self, user_id: str, limit: int = 50) -> list[Resume]:
        """List a user's resumes, newest first."""
        return await self.repository.list_for_user(user_id, limit=limit)

    def project(
        self,
        resume: Resume,
        viewer: User | None,
        include_improved_text: bool | None = None,
    ) -> ResumeView:
        """Build the client view of a resume.

        Args:
            resume: The stored resume.
            viewer: The user requesting the resume.
            include_improved_text: Explicit override of the plan policy.

        Returns:
            The projected view.
        """
        if include_improved_text is None:
            include_improved_text = can_view_improved_text(viewer)
        return resume.to_view(include_improved_text=include_improved_text)
