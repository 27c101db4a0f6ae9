"""Tests for the Redis-backed job queue with a mocked client."""

from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from resume_pipeline.config.settings import Settings
from resume_pipeline.jobs.base import QueueUnavailableError
from resume_pipeline.jobs.factory import create_job_queue
from resume_pipeline.jobs.memory import InMemoryJobQueue
from resume_pipeline.jobs.models import UploadJob
from resume_pipeline.jobs.redis_queue import RedisJobQueue


@pytest.fixture
def job() -> UploadJob:
    return UploadJob(
        resume_id="r1",
        bucket="resume-uploads",
        object_key="uploads/u1/file.txt",
        filename="file.txt",
        user_id="u1",
    )


@pytest.fixture
def client() -> AsyncMock:
    return AsyncMock()


class TestRedisJobQueue:
    """Test LPUSH/BRPOP semantics."""

    async def test_enqueue_lpushes_json(self, client, job):
        queue = RedisJobQueue(client, key="jobs")

        await queue.enqueue(job)

        client.lpush.assert_awaited_once_with("jobs", job.to_json())

    async def test_dequeue_brpops_with_timeout(self, client, job):
        client.brpop.return_value = ("jobs", job.to_json())
        queue = RedisJobQueue(client, key="jobs")

        result = await queue.dequeue(3)

        assert result == job
        client.brpop.assert_awaited_once_with(["jobs"], timeout=3)

    async def test_dequeue_timeout_returns_none(self, client):
        client.brpop.return_value = None
        queue = RedisJobQueue(client)

        assert await queue.dequeue(1) is None

    async def test_zero_timeout_uses_rpop(self, client, job):
        client.rpop.return_value = job.to_json()
        queue = RedisJobQueue(client, key="jobs")

        assert await queue.dequeue(0) == job
        client.rpop.assert_awaited_once_with("jobs")
        client.brpop.assert_not_called()

    async def test_malformed_payload_is_dropped(self, client):
        client.brpop.return_value = ("jobs", "{not json")
        queue = RedisJobQueue(client, key="jobs")

        assert await queue.dequeue(1) is None

    async def test_enqueue_connection_error(self, client, job):
        client.lpush.side_effect = RedisConnectionError("refused")
        queue = RedisJobQueue(client)

        with pytest.raises(QueueUnavailableError):
            await queue.enqueue(job)

    async def test_dequeue_connection_error(self, client):
        client.brpop.side_effect = RedisConnectionError("refused")
        queue = RedisJobQueue(client)

        with pytest.raises(QueueUnavailableError):
            await queue.dequeue(1)

    async def test_size_and_close(self, client):
        client.llen.return_value = 4
        queue = RedisJobQueue(client, key="jobs")

        assert await queue.size() == 4
        await queue.close()
        client.aclose.assert_awaited_once()


class TestCreateJobQueue:
    """Test backend selection."""

    def test_memory_backend(self):
        settings = Settings(_env_file=None, queue_backend="memory")
        assert isinstance(create_job_queue(settings), InMemoryJobQueue)

    def test_redis_backend(self):
        settings = Settings(
            _env_file=None,
            queue_backend="redis",
            redis_url="redis://cache:6379/1",
            queue_key="custom_jobs",
        )

        with patch("redis.asyncio.from_url") as from_url:
            queue = create_job_queue(settings)

        assert isinstance(queue, RedisJobQueue)
        assert queue.key == "custom_jobs"
        from_url.assert_called_once_with("redis://cache:6379/1", decode_responses=True)
