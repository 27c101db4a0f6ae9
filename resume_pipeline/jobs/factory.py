"""Queue construction from settings."""

from resume_pipeline.config.settings import QueueBackend, Settings
from resume_pipeline.jobs.base import JobQueue
from resume_pipeline.jobs.memory import InMemoryJobQueue
from resume_pipeline.jobs.redis_queue import RedisJobQueue


def create_job_queue(settings: Settings) -> JobQueue:
    """Build the job queue selected by ``settings.queue_backend``."""
    if settings.queue_backend == QueueBackend.REDIS:
        return RedisJobQueue.from_url(settings.redis_url, key=settings.queue_key)
    return InMemoryJobQueue()
