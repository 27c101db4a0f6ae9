"""In-process job queue.

Jobs live in the memory of one event loop and are lost when the process
exits, so producers and workers must run in the same process.
"""

import asyncio

from resume_pipeline.jobs.models import UploadJob


class InMemoryJobQueue:
    """Unbounded FIFO queue backed by ``asyncio.Queue``."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[UploadJob] = asyncio.Queue()

    async def enqueue(self, job: UploadJob) -> None:
        self._queue.put_nowait(job)

    async def dequeue(self, timeout: float) -> UploadJob | None:
        """Remove and return the oldest job.

        Args:
            timeout: Seconds to wait for a job; 0 or less returns immediately.

        Returns:
            The job, or None if none arrived in time.
        """
        if timeout <= 0:
            try:
                return self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return None

        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except TimeoutError:
            return None

    def qsize(self) -> int:
        return self._queue.qsize()

    async def close(self) -> None:
        return None
