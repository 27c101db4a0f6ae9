"""Wiring of the pipeline components for one process."""

from __future__ import annotations

from dataclasses import dataclass

from resume_pipeline.accounts.ledger import CreditLedger
from resume_pipeline.accounts.repository import UserRepository
from resume_pipeline.config.settings import Settings
from resume_pipeline.database import Database
from resume_pipeline.jobs.base import JobQueue
from resume_pipeline.jobs.factory import create_job_queue
from resume_pipeline.optimizer.engine import LLMOptimizationEngine, OptimizationEngine
from resume_pipeline.pipeline.orchestrator import UploadOrchestrator
from resume_pipeline.pipeline.processing import ResumeProcessor
from resume_pipeline.pipeline.worker import WorkerLoop
from resume_pipeline.resumes.repository import ResumeRepository
from resume_pipeline.resumes.service import ResumeService
from resume_pipeline.storage.object_store import LocalObjectStore, ObjectStore


@dataclass
class PipelineApp:
    """Every component of the pipeline, built once per process."""

    settings: Settings
    database: Database
    users: UserRepository
    ledger: CreditLedger
    resumes: ResumeService
    queue: JobQueue
    object_store: ObjectStore
    processor: ResumeProcessor
    orchestrator: UploadOrchestrator

    def create_worker(self, name: str = "worker-1") -> WorkerLoop:
        return WorkerLoop(
            queue=self.queue,
            users=self.users,
            resumes=self.resumes,
            ledger=self.ledger,
            processor=self.processor,
            object_store=self.object_store,
            settings=self.settings,
            name=name,
        )

    async def close(self) -> None:
        await self.queue.close()
        await self.database.close()


async def build_app(
    settings: Settings,
    *,
    engine: OptimizationEngine | None = None,
    queue: JobQueue | None = None,
    object_store: ObjectStore | None = None,
) -> PipelineApp:
    """Build and initialize the pipeline.

    Args:
        settings: Application settings.
        engine: Optimisation engine (LLM-backed by default).
        queue: Job queue (chosen from settings by default).
        object_store: Object store (local filesystem by default).

    Returns:
        The wired application with its database schema created.
    """
    database = Database(settings.database_path)
    await database.initialize()

    users = UserRepository(database)
    ledger = CreditLedger(database)
    resumes = ResumeService(ResumeRepository(database))
    if queue is None:
        queue = create_job_queue(settings)
    if object_store is None:
        object_store = LocalObjectStore(
            settings.object_store_root,
            secret=settings.presign_secret,
            base_url=settings.presign_base_url,
        )
    if engine is None:
        engine = LLMOptimizationEngine()
    processor = ResumeProcessor(resumes.repository, ledger, engine)
    orchestrator = UploadOrchestrator(
        users=users,
        ledger=ledger,
        resumes=resumes,
        processor=processor,
        queue=queue,
        object_store=object_store,
        settings=settings,
    )
    return PipelineApp(
        settings=settings,
        database=database,
        users=users,
        ledger=ledger,
        resumes=resumes,
        queue=queue,
        object_store=object_store,
        processor=processor,
        orchestrator=orchestrator,
    )
