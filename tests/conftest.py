"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime

import pytest

from resume_pipeline.accounts.ledger import CreditLedger
from resume_pipeline.accounts.models import Plan, User
from resume_pipeline.accounts.repository import UserRepository
from resume_pipeline.config.settings import Settings
from resume_pipeline.database import Database
from resume_pipeline.jobs.memory import InMemoryJobQueue
from resume_pipeline.optimizer.models import OptimizationResult
from resume_pipeline.resumes.models import Resume, ResumeIssue, ResumeStatus
from resume_pipeline.resumes.repository import ResumeRepository
from resume_pipeline.resumes.service import ResumeService


class FakeEngine:
    """Optimisation engine double that records its inputs."""

    def __init__(
        self,
        result: OptimizationResult | None = None,
        error: Exception | None = None,
    ):
        self.result = result or OptimizationResult(
            improved_text="Improved resume text",
            ats_score=88,
            keywords_score=8,
            formatting_score=9,
            issues=[ResumeIssue("weak-language", "Use stronger verbs", "high")],
        )
        self.error = error
        self.calls: list[str] = []

    async def optimize(self, text: str) -> OptimizationResult:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.result


def make_resume(
    resume_id: str = "r1",
    user_id: str = "u1",
    status: ResumeStatus = ResumeStatus.QUEUED,
    **kwargs,
) -> Resume:
    now = kwargs.pop("created_at", None) or datetime.now(UTC)
    return Resume(
        id=resume_id,
        user_id=user_id,
        file_name=kwargs.pop("file_name", "resume.txt"),
        status=status,
        created_at=now,
        updated_at=now,
        **kwargs,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing every path into a temporary directory."""
    return Settings(
        _env_file=None,
        database_path=tmp_path / "resumes.db",
        object_store_root=tmp_path / "objects",
        presign_secret="test-secret",
        queue_backend="memory",
        worker_poll_timeout=0.1,
    )


@pytest.fixture
async def database(tmp_path):
    """Initialized database in a temporary directory."""
    db = Database(tmp_path / "test.db")
    await db.initialize()
    yield db
    await db.close()


@pytest.fixture
def user_repo(database) -> UserRepository:
    return UserRepository(database)


@pytest.fixture
def ledger(database) -> CreditLedger:
    return CreditLedger(database)


@pytest.fixture
def resume_repo(database) -> ResumeRepository:
    return ResumeRepository(database)


@pytest.fixture
def resume_service(resume_repo) -> ResumeService:
    return ResumeService(resume_repo)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def memory_queue() -> InMemoryJobQueue:
    return InMemoryJobQueue()


@pytest.fixture
async def free_user(user_repo) -> User:
    """Free-plan user with three credits."""
    return await user_repo.create_user(
        "free@example.com", plan=Plan.FREE, credits=3, user_id="u1"
    )


@pytest.fixture
async def pro_user(user_repo) -> User:
    """Pro-plan user with three credits."""
    return await user_repo.create_user(
        "pro@example.com", plan=Plan.PRO, credits=3, user_id="u2"
    )


@pytest.fixture
async def admin_user(user_repo) -> User:
    """Exempt user with an empty balance."""
    return await user_repo.create_user(
        "admin@example.com", plan=Plan.ADMIN, credits=0, user_id="admin"
    )


@pytest.fixture
def engine_factory():
    """Build FakeEngine instances with a custom result or error."""
    return FakeEngine


@pytest.fixture
def resume_factory():
    """Build unsaved Resume records."""
    return make_resume
