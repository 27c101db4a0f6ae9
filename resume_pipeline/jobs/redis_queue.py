"""Durable job queue on a Redis list.

Producers ``LPUSH`` JSON payloads and workers ``BRPOP`` them, so several
worker processes can compete for the same list. Popping is destructive:
a worker that crashes mid-job loses that job, and a transport that
redelivers relies on the resume status guard to skip it.
"""

import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from resume_pipeline.jobs.base import QueueUnavailableError
from resume_pipeline.jobs.models import UploadJob

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_KEY = "upload_jobs_v1"


class RedisJobQueue:
    """FIFO queue stored in a Redis list."""

    def __init__(self, client: Any, key: str = DEFAULT_QUEUE_KEY) -> None:
        """Initialize the queue.

        Args:
            client: A ``redis.asyncio.Redis`` client (decode_responses=True).
            key: List key holding the jobs.
        """
        self.client = client
        self.key = key

    @classmethod
    def from_url(cls, url: str, key: str = DEFAULT_QUEUE_KEY) -> "RedisJobQueue":
        """Create a queue connected to the Redis server at ``url``."""
        return cls(redis.from_url(url, decode_responses=True), key=key)

    async def enqueue(self, job: UploadJob) -> None:
        """Append a job to the tail of the list.

        Raises:
            QueueUnavailableError: If Redis cannot be reached.
        """
        try:
            await self.client.lpush(self.key, job.to_json())
        except RedisError as e:
            raise QueueUnavailableError(f"Failed to enqueue job: {e}", e) from e

    async def dequeue(self, timeout: float) -> UploadJob | None:
        """Pop the oldest job, blocking up to ``timeout`` seconds.

        Malformed payloads are logged and dropped.

        Raises:
            QueueUnavailableError: If Redis cannot be reached.
        """
        try:
            if timeout <= 0:
                # BRPOP treats 0 as "block forever"
                payload = await self.client.rpop(self.key)
            else:
                result = await self.client.brpop([self.key], timeout=timeout)
                payload = result[1] if result else None
        except RedisError as e:
            raise QueueUnavailableError(f"Failed to dequeue job: {e}", e) from e

        if payload is None:
            return None

        try:
            return UploadJob.from_json(payload)
        except ValueError as e:
            logger.error("Dropping malformed job payload %r: %s", payload, e)
            return None

    async def size(self) -> int:
        """Number of jobs waiting in the list."""
        try:
            return int(await self.client.llen(self.key))
        except RedisError as e:
            raise QueueUnavailableError(f"Failed to read queue size: {e}", e) from e

    async def close(self) -> None:
        await self.client.aclose()
