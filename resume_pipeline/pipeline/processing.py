"""Terminal transitions shared by the direct path and the worker.

A resume leaves ``processing`` exactly once. Completion stores the engine
result; failure stores a failure marker and, when the record was charged,
returns the credit. The refund is tied to the guarded transition, so a
second failure handler for the same record cannot refund twice.

Uploads linked to an in-flight original through ``duplicate_of`` wait in
``processing`` and are settled here when the original finishes.
"""

from __future__ import annotations

import logging

from resume_pipeline.accounts.ledger import CreditLedger
from resume_pipeline.accounts.models import User
from resume_pipeline.optimizer.engine import EngineError, OptimizationEngine
from resume_pipeline.optimizer.models import OptimizationResult
from resume_pipeline.resumes.models import Resume, ResumeStatus
from resume_pipeline.resumes.repository import ResumeRepository

logger = logging.getLogger(__name__)

DUPLICATE_SOURCE_FAILED = "duplicate_source_failed"


class ResumeProcessor:
    """Runs the optimisation engine and applies the resulting transition."""

    def __init__(
        self,
        repository: ResumeRepository,
        ledger: CreditLedger,
        engine: OptimizationEngine,
    ) -> None:
        self.repository = repository
        self.ledger = ledger
        self.engine = engine

    async def process(
        self, resume_id: str, text: str, user: User, *, charged: bool
    ) -> OptimizationResult:
        """Optimise a processing resume and complete it.

        The result is stored only if the record is still ``processing`` when
        the engine returns; callers read the record back for its final status.

        Args:
            resume_id: The resume, already in ``processing``.
            text: Extracted resume text.
            user: Owner of the resume.
            charged: Whether a credit was deducted for this resume.

        Returns:
            The optimisation result.

        Raises:
            EngineError: If the engine failed. The record is failed and the
                credit refunded before this is raised.
        """
        try:
            result = await self.engine.optimize(text)
        except Exception as e:
            logger.error("Optimization failed for resume %s: %s", resume_id, e)
            await self.fail(
                resume_id, user, f"optimization_failed: {e}", charged=charged
            )
            if isinstance(e, EngineError):
                raise
            raise EngineError(str(e), e) from e

        completed = await self.repository.mark_completed(
            resume_id,
            improved_text=result.improved_text,
            ats_score=result.ats_score,
            keywords_score=result.keywords_score,
            formatting_score=result.formatting_score,
            issues=result.issues,
        )
        if completed:
            logger.info(
                "Resume %s completed (ats=%s)", resume_id, result.ats_score
            )
            await self.settle_duplicates(resume_id)
        else:
            logger.warning(
                "Resume %s was no longer processing; result discarded", resume_id
            )
        return result

    async def fail(
        self, resume_id: str, user: User | None, message: str, *, charged: bool
    ) -> bool:
        """Mark a resume failed, refunding its credit if one was charged.

        Args:
            resume_id: The resume to fail.
            user: Owner of the resume, or None if it could not be resolved.
            message: Failure marker stored on the record.
            charged: Whether a credit was deducted for this resume.

        Returns:
            True if this call moved the record to ``failed``.
        """
        transitioned = await self.repository.mark_failed(resume_id, message)
        if not transitioned:
            logger.warning(
                "Resume %s already terminal or missing; not marking failed", resume_id
            )
            return False

        if charged and user is not None:
            try:
                await self.ledger.refund(user)
            except Exception:
                logger.exception(
                    "Refund failed for user %s after resume %s failed",
                    user.id,
                    resume_id,
                )
                raise
        await self.settle_duplicates(resume_id)
        return True

    async def settle_duplicates(self, original_id: str) -> int:
        """Finish uploads waiting on ``original_id`` if it has reached a terminal state.

        Waiting uploads were never charged, so failing them refunds nothing.

        Returns:
            The number of waiting uploads this call moved to a terminal state.
        """
        original = await self.repository.get_by_id(original_id)
        if original is not None and not original.status.is_terminal:
            return 0

        settled = 0
        for resume_id in await self.repository.list_waiting_duplicates(original_id):
            if original is not None and original.status == ResumeStatus.COMPLETED:
                done = await self.mirror(resume_id, original)
            else:
                done = await self.repository.mark_failed(
                    resume_id, DUPLICATE_SOURCE_FAILED
                )
            settled += int(done)
        if settled:
            logger.info(
                "Settled %s upload(s) waiting on resume %s", settled, original_id
            )
        return settled

    async def mirror(self, resume_id: str, original: Resume) -> bool:
        """Complete a processing resume with a completed original's results."""
        return await self.repository.mark_completed(
            resume_id,
            improved_text=original.improved_text,
            ats_score=original.ats_score,
            keywords_score=original.keywords_score,
            formatting_score=original.formatting_score,
            issues=original.issues,
            duplicate_of=original.id,
        )
