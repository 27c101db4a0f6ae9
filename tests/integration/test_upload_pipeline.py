"""End-to-end tests of the upload pipeline.

These wire the real database, object store, in-memory queue and worker
together through ``build_app``; only the optimisation engine is faked.
"""

import pytest

from resume_pipeline.accounts.models import Plan
from resume_pipeline.optimizer.engine import EngineError
from resume_pipeline.pipeline.app import build_app
from resume_pipeline.pipeline.errors import (
    EngineFailedError,
    InsufficientCreditsError,
    UploadParseError,
)
from resume_pipeline.resumes.models import ResumeStatus


@pytest.fixture
async def app(settings, fake_engine):
    app = await build_app(settings, engine=fake_engine)
    yield app
    await app.close()


@pytest.fixture
async def failing_app(settings, engine_factory):
    app = await build_app(
        settings, engine=engine_factory(error=EngineError("quota exceeded"))
    )
    yield app
    await app.close()


class TestDeferredUpload:
    """Presigned upload followed by the worker."""

    async def test_queued_upload_is_completed_by_worker(self, app, fake_engine):
        await app.users.create_user("u1@example.com", credits=2, user_id="u1")
        await app.object_store.put(
            app.settings.upload_bucket, "uploads/u1/file.txt", b"Hello World"
        )

        outcome = await app.orchestrator.complete_upload(
            "u1", "uploads/u1/file.txt", "file.txt"
        )
        queued = await app.resumes.get_resume(outcome.resume_id)
        assert queued.status == ResumeStatus.QUEUED
        assert app.queue.qsize() == 1

        worker = app.create_worker()
        job = await app.queue.dequeue(0)
        assert job.resume_id == outcome.resume_id
        status = await worker.handle_job(job)

        resume = await app.resumes.get_resume(outcome.resume_id)
        assert status == ResumeStatus.COMPLETED
        assert resume.status == ResumeStatus.COMPLETED
        assert resume.original_text == "Hello World"
        assert resume.improved_text is not None
        assert fake_engine.calls == ["Hello World"]
        assert await app.ledger.balance("u1") == 1

    async def test_presigned_key_round_trip(self, app):
        await app.users.create_user("u1@example.com", credits=1, user_id="u1")

        presigned = await app.orchestrator.presign_upload(
            "u1", "resume.txt", "text/plain"
        )
        # The client PUTs the bytes to the signed URL
        await app.object_store.put_presigned(
            presigned.url, "text/plain", b"Jane Doe, Engineer"
        )
        outcome = await app.orchestrator.complete_upload(
            "u1", presigned.key, "resume.txt"
        )
        stats = await app.create_worker().drain()

        resume = await app.resumes.get_resume(outcome.resume_id)
        assert stats.completed == 1
        assert resume.status == ResumeStatus.COMPLETED

    async def test_worker_failure_restores_balance(self, failing_app):
        app = failing_app
        await app.users.create_user("u1@example.com", credits=1, user_id="u1")
        await app.object_store.put(
            app.settings.upload_bucket, "uploads/u1/file.txt", b"Hello World"
        )

        outcome = await app.orchestrator.complete_upload(
            "u1", "uploads/u1/file.txt", "file.txt"
        )
        stats = await app.create_worker().drain()

        resume = await app.resumes.get_resume(outcome.resume_id)
        assert stats.failed == 1
        assert resume.status == ResumeStatus.FAILED
        assert resume.improved_text is None
        assert await app.ledger.balance("u1") == 1


class TestDirectUpload:
    """Inline upload with optimisation in the request."""

    async def test_engine_failure_fails_record_and_restores_balance(
        self, failing_app
    ):
        app = failing_app
        await app.users.create_user("u1@example.com", credits=2, user_id="u1")

        with pytest.raises(EngineFailedError) as exc_info:
            await app.orchestrator.upload_direct(
                "u1", b"Jane Doe, Engineer", "cv.txt", "text/plain"
            )

        resume = await app.resumes.get_resume(exc_info.value.resume_id)
        assert resume.status == ResumeStatus.FAILED
        assert resume.improved_text is None
        assert await app.ledger.balance("u1") == 2

    async def test_empty_balance_creates_nothing(self, app, fake_engine):
        await app.users.create_user("u1@example.com", credits=0, user_id="u1")

        with pytest.raises(InsufficientCreditsError):
            await app.orchestrator.upload_direct(
                "u1", b"Jane Doe, Engineer", "cv.txt", "text/plain"
            )

        assert await app.resumes.list_resumes("u1") == []
        assert app.queue.qsize() == 0
        assert fake_engine.calls == []

    async def test_parse_failure_leaves_balance(self, app):
        await app.users.create_user("u1@example.com", credits=1, user_id="u1")

        with pytest.raises(UploadParseError):
            await app.orchestrator.upload_direct(
                "u1", b"\xff\xfe\xfa", "cv.txt", "text/plain"
            )

        assert await app.ledger.balance("u1") == 1

    async def test_same_text_uploaded_twice_is_charged_once(self, app, fake_engine):
        await app.users.create_user("u1@example.com", credits=5, user_id="u1")

        first = await app.orchestrator.upload_direct(
            "u1", b"Jane Doe\nEngineer", "cv.txt", "text/plain"
        )
        second = await app.orchestrator.upload_direct(
            "u1", b"  Jane Doe  \r\nEngineer\n\n\n", "cv-copy.txt", "text/plain"
        )

        assert second.is_duplicate is True
        assert second.resume_id == first.resume_id
        assert len(fake_engine.calls) == 1
        assert await app.ledger.balance("u1") == 4

    async def test_duplicate_detected_across_paths(self, app, fake_engine):
        await app.users.create_user("u1@example.com", credits=5, user_id="u1")
        first = await app.orchestrator.upload_direct(
            "u1", b"Hello World", "cv.txt", "text/plain"
        )
        await app.object_store.put(
            app.settings.upload_bucket, "uploads/u1/file.txt", b"Hello World"
        )

        outcome = await app.orchestrator.complete_upload(
            "u1", "uploads/u1/file.txt", "file.txt"
        )
        await app.create_worker().drain()

        mirrored = await app.resumes.get_resume(outcome.resume_id)
        assert mirrored.status == ResumeStatus.COMPLETED
        assert mirrored.duplicate_of == first.resume_id
        assert len(fake_engine.calls) == 1
        assert await app.ledger.balance("u1") == 4


class TestExemptAccounts:
    """Exempt plans bypass credit accounting."""

    @pytest.mark.parametrize("fails", [False, True])
    async def test_balance_untouched(self, settings, engine_factory, fails):
        engine = engine_factory(error=EngineError("down") if fails else None)
        app = await build_app(settings, engine=engine)
        try:
            await app.users.create_user(
                "admin@example.com", plan=Plan.ADMIN, credits=0, user_id="admin"
            )
            for _ in range(2):
                try:
                    await app.orchestrator.upload_direct(
                        "admin", b"Jane Doe", "cv.txt", "text/plain"
                    )
                except EngineFailedError:
                    assert fails

            await app.object_store.put(
                settings.upload_bucket, "uploads/admin/file.txt", b"Jane Doe"
            )
            await app.orchestrator.complete_upload(
                "admin", "uploads/admin/file.txt", "file.txt"
            )
            await app.create_worker().drain()

            assert await app.ledger.balance("admin") == 0
            resumes = await app.resumes.list_resumes("admin")
            assert len(resumes) == 3
            assert all(not resume.credit_charged for resume in resumes)
            assert len(engine.calls) == 3
        finally:
            await app.close()
