"""Job queue contract shared by all transports."""

from typing import Protocol

from resume_pipeline.jobs.models import UploadJob


class QueueUnavailableError(Exception):
    """Raised when the queue transport cannot be reached."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class JobQueue(Protocol):
    """FIFO queue of upload jobs.

    ``enqueue`` appends to the tail. ``dequeue`` removes the head, waiting
    up to ``timeout`` seconds for one to arrive and returning None when the
    wait elapses.
    """

    async def enqueue(self, job: UploadJob) -> None: ...

    async def dequeue(self, timeout: float) -> UploadJob | None: ...

    async def close(self) -> None: ...
