"""
Job Tracker - progress records for long-running pipeline operations

A job is created already in the processing state at progress 0. The owning
operation reports progress and item counts itself; the tracker stores what
it is given and does not derive progress from the counts.

Transitions are one-directional (processing → completed | failed). Any
mutation of a terminal job raises JobStateError; retrying means creating a
new job.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from recruit_intel.models import JobStatus, JobType, ProcessingJob
from recruit_intel.services.storage import NotFoundError, Storage

logger = logging.getLogger(__name__)


class JobStateError(Exception):
    """Raised when a completed or failed job is mutated."""


def error_message(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


class JobTracker:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def create(
        self,
        job_type: JobType,
        metadata: Optional[Dict[str, Any]] = None,
        total_items: int = 0,
    ) -> ProcessingJob:
        job = await self.storage.create_processing_job(
            type=JobType(job_type).value,
            status=JobStatus.PROCESSING.value,
            progress=0.0,
            total_items=total_items,
            processed_items=0,
            job_metadata=metadata,
        )
        logger.info(f"Created {job.type} job {job.id}")
        return job

    async def get(self, job_id: int) -> ProcessingJob:
        job = await self.storage.get_processing_job(job_id)
        if job is None:
            raise NotFoundError(f"ProcessingJob with id {job_id} not found")
        return job

    async def _mutate(self, job_id: int, **fields) -> ProcessingJob:
        job = await self.get(job_id)
        if job.is_terminal:
            raise JobStateError(f"Job {job_id} is already {job.status}")
        return await self.storage.update_processing_job(job_id, **fields)

    async def update(
        self,
        job_id: int,
        progress: Optional[float] = None,
        processed_items: Optional[int] = None,
        total_items: Optional[int] = None,
    ) -> ProcessingJob:
        fields: Dict[str, Any] = {}
        if progress is not None:
            fields["progress"] = max(0.0, min(100.0, float(progress)))
        if processed_items is not None:
            fields["processed_items"] = processed_items
        if total_items is not None:
            fields["total_items"] = total_items
        return await self._mutate(job_id, **fields)

    async def complete(self, job_id: int) -> ProcessingJob:
        job = await self._mutate(job_id, status=JobStatus.COMPLETED.value, progress=100.0)
        logger.info(f"Job {job_id} ({job.type}) completed")
        return job

    async def fail(self, job_id: int, message: str) -> ProcessingJob:
        job = await self._mutate(job_id, status=JobStatus.FAILED.value, error=message)
        logger.error(f"Job {job_id} ({job.type}) failed: {message}")
        return job

    async def run(self, job_id: int, operation: Callable[[], Awaitable[Any]]) -> ProcessingJob:
        """
        Await an operation and settle the job with its outcome.

        Any exception raised by the operation marks the job failed with the
        exception's message (its class name when the message is empty); the
        exception is not re-raised, since the job record is the only place
        a background caller can observe it.
        """
        try:
            await operation()
        except Exception as e:
            logger.exception(f"Job {job_id} operation raised")
            return await self.fail(job_id, error_message(e))
        return await self.complete(job_id)
