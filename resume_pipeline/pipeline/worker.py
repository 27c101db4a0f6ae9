"""Worker loop that drains the upload job queue.

Each job references a file already in the object store and a ``queued``
placeholder resume. The worker claims the placeholder, extracts and
deduplicates the text, charges a credit and runs the optimisation engine.
An upload identical to one already charged is linked to it instead of
being charged again. Failures become ``failed`` records; nothing escapes
the loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from dataclasses import dataclass

from resume_pipeline.accounts.ledger import CreditLedger
from resume_pipeline.accounts.repository import UserRepository
from resume_pipeline.config.settings import Settings
from resume_pipeline.jobs.base import JobQueue, QueueUnavailableError
from resume_pipeline.jobs.models import UploadJob
from resume_pipeline.optimizer.engine import EngineError
from resume_pipeline.parsing.parser import ParseError, guess_mime_type, parse_file
from resume_pipeline.pipeline.processing import ResumeProcessor
from resume_pipeline.resumes.models import DuplicateFound, Resume, ResumeStatus
from resume_pipeline.resumes.service import ResumeService
from resume_pipeline.storage.object_store import ObjectNotFoundError, ObjectStore

logger = logging.getLogger(__name__)

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass
class WorkerStats:
    """Counters for the jobs one worker has handled."""

    processed: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    waiting: int = 0

    def record(self, status: ResumeStatus | None) -> None:
        self.processed += 1
        if status is None:
            self.skipped += 1
        elif status == ResumeStatus.COMPLETED:
            self.completed += 1
        elif status == ResumeStatus.FAILED:
            self.failed += 1
        else:
            self.waiting += 1


class WorkerLoop:
    """Consumes UploadJobs until stopped."""

    def __init__(
        self,
        *,
        queue: JobQueue,
        users: UserRepository,
        resumes: ResumeService,
        ledger: CreditLedger,
        processor: ResumeProcessor,
        object_store: ObjectStore,
        settings: Settings,
        name: str = "worker-1",
    ) -> None:
        self.queue = queue
        self.users = users
        self.resumes = resumes
        self.ledger = ledger
        self.processor = processor
        self.object_store = object_store
        self.settings = settings
        self.name = name
        self.poll_timeout = settings.worker_poll_timeout
        self.stats = WorkerStats()
        self._stop_event = asyncio.Event()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Ask the loop to exit after the job in flight, if any."""
        if not self._stop_event.is_set():
            logger.info("%s: stop requested", self.name)
        self._stop_event.set()

    async def run(self, *, install_signal_handlers: bool = True) -> WorkerStats:
        """Process jobs until ``stop()`` is called or SIGINT/SIGTERM arrives.

        A stop request is noticed between jobs, so the loop may keep waiting
        on an empty queue for up to ``poll_timeout`` seconds before exiting.
        """
        loop = asyncio.get_running_loop()
        if install_signal_handlers:
            for sig in _STOP_SIGNALS:
                with contextlib.suppress(Exception):
                    loop.add_signal_handler(sig, self.stop)

        logger.info("%s: started (poll timeout %ss)", self.name, self.poll_timeout)
        try:
            while not self._stop_event.is_set():
                await self.run_once(self.poll_timeout)
        finally:
            if install_signal_handlers:
                for sig in _STOP_SIGNALS:
                    with contextlib.suppress(Exception):
                        loop.remove_signal_handler(sig)
            logger.info(
                "%s: stopped (processed=%s completed=%s failed=%s skipped=%s "
                "waiting=%s)",
                self.name,
                self.stats.processed,
                self.stats.completed,
                self.stats.failed,
                self.stats.skipped,
                self.stats.waiting,
            )
        return self.stats

    async def run_once(self, timeout: float) -> bool:
        """Dequeue and handle at most one job.

        Returns:
            True if a job was taken off the queue.
        """
        try:
            job = await self.queue.dequeue(timeout)
        except QueueUnavailableError as e:
            logger.error("%s: queue unavailable: %s", self.name, e)
            # Back off instead of spinning on a dead transport
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=max(timeout, 1.0)
                )
            return False

        if job is None:
            return False

        try:
            status = await self.handle_job(job)
        except Exception:
            logger.exception(
                "%s: unhandled error for resume %s", self.name, job.resume_id
            )
            status = ResumeStatus.FAILED
        self.stats.record(status)
        return True

    async def drain(self) -> WorkerStats:
        """Handle queued jobs until the queue is empty, without blocking."""
        while not self._stop_event.is_set():
            if not await self.run_once(0):
                break
        return self.stats

    async def handle_job(self, job: UploadJob) -> ResumeStatus | None:
        """Process one upload job.

        Args:
            job: The dequeued job.

        Returns:
            The status the resume was left in: terminal, or ``processing``
            when it is waiting on an identical upload still in flight. None
            if the job was a redelivery for a resume that was no longer
            queued.
        """
        if not await self.resumes.repository.claim(job.resume_id):
            logger.info(
                "%s: resume %s is not queued; skipping redelivered job",
                self.name,
                job.resume_id,
            )
            return None

        # Once claimed, every exit path leaves the record terminal or linked
        user = None
        charged = False
        try:
            user = await self.users.get_by_id(job.user_id)
            if user is None:
                await self.processor.fail(
                    job.resume_id, None, "user_not_found", charged=False
                )
                return ResumeStatus.FAILED

            data = await self.object_store.get(job.bucket, job.object_key)
            text = parse_file(
                data,
                guess_mime_type(job.filename),
                job.filename,
                min_length=self.settings.min_text_length,
            )

            content_hash, duplicate = await self.resumes.detect_duplicate(user, text)
            if (
                isinstance(duplicate, DuplicateFound)
                and duplicate.resume.id != job.resume_id
            ):
                return await self._link_duplicate(
                    job, text, content_hash, duplicate.resume
                )

            if not await self.ledger.try_deduct(user):
                await self.processor.fail(
                    job.resume_id, user, "no_credits", charged=False
                )
                return ResumeStatus.FAILED
            charged = not user.is_exempt

            await self.resumes.repository.record_extraction(
                job.resume_id,
                original_text=text,
                content_hash=content_hash,
                credit_charged=charged,
            )
            await self.resumes.register_content_hash(
                user.id, content_hash, job.resume_id
            )
        except ObjectNotFoundError as e:
            logger.error("%s: %s", self.name, e)
            await self.processor.fail(
                job.resume_id, user, "object_not_found", charged=charged
            )
            return ResumeStatus.FAILED
        except ParseError as e:
            logger.warning(
                "%s: parse failed for resume %s: %s", self.name, job.resume_id, e
            )
            await self.processor.fail(
                job.resume_id, user, f"parse_failed: {e}", charged=charged
            )
            return ResumeStatus.FAILED
        except Exception as e:
            logger.exception(
                "%s: processing failed for resume %s", self.name, job.resume_id
            )
            await self.processor.fail(
                job.resume_id, user, f"processing_failed: {e}", charged=charged
            )
            return ResumeStatus.FAILED

        try:
            await self.processor.process(job.resume_id, text, user, charged=charged)
        except EngineError:
            return ResumeStatus.FAILED
        return await self._stored_status(job.resume_id)

    async def _link_duplicate(
        self,
        job: UploadJob,
        text: str,
        content_hash: str | None,
        original: Resume,
    ) -> ResumeStatus | None:
        """Attach a placeholder to an earlier identical upload without charging.

        A completed original is mirrored straight away. An original still in
        flight settles the placeholder when it finishes.
        """
        logger.info(
            "%s: resume %s duplicates resume %s (%s); no credit charged",
            self.name,
            job.resume_id,
            original.id,
            original.status.value,
        )
        await self.resumes.repository.record_extraction(
            job.resume_id,
            original_text=text,
            content_hash=content_hash,
            credit_charged=False,
            duplicate_of=original.id,
        )
        # The original may have finished between lookup and link
        await self.processor.settle_duplicates(original.id)
        return await self._stored_status(job.resume_id)

    async def _stored_status(self, resume_id: str) -> ResumeStatus | None:
        resume = await self.resumes.repository.get_by_id(resume_id)
        return resume.status if resume is not None else None


async def run_workers(workers: list[WorkerLoop]) -> list[WorkerStats]:
    """Run several worker loops on one queue until they are stopped.

    SIGINT/SIGTERM stop every loop; each finishes its in-flight job first.
    """
    if not workers:
        raise ValueError("at least one worker is required")

    loop = asyncio.get_running_loop()

    def _request_stop() -> None:
        for worker in workers:
            worker.stop()

    for sig in _STOP_SIGNALS:
        with contextlib.suppress(Exception):
            loop.add_signal_handler(sig, _request_stop)

    try:
        return list(
            await asyncio.gather(
                *(worker.run(install_signal_handlers=False) for worker in workers)
            )
        )
    finally:
        for sig in _STOP_SIGNALS:
            with contextlib.suppress(Exception):
                loop.remove_signal_handler(sig)
