"""Upload job queue.

Public API:
- UploadJob: Queue message referencing a stored upload
- JobQueue: Protocol implemented by every transport
- InMemoryJobQueue: Single-process queue
- RedisJobQueue: Durable queue on a Redis list
- QueueUnavailableError: Raised when the transport is unreachable
- create_job_queue: Build the configured queue
"""

from resume_pipeline.jobs.base import JobQueue, QueueUnavailableError
from resume_pipeline.jobs.factory import create_job_queue
from resume_pipeline.jobs.memory import InMemoryJobQueue
from resume_pipeline.jobs.models import UploadJob
from resume_pipeline.jobs.redis_queue import RedisJobQueue

__all__ = [
    "InMemoryJobQueue",
    "JobQueue",
    "QueueUnavailableError",
    "RedisJobQueue",
    "UploadJob",
    "create_job_queue",
]
