"""
Tests for the processing job tracker

Tests cover:
- Creation in the processing state
- Completion forcing progress to 100
- Failure capturing the error message
- One-directional transitions
"""

import pytest

from recruit_intel.models import JobType
from recruit_intel.services.job_tracker import JobStateError, JobTracker
from recruit_intel.services.storage import NotFoundError


@pytest.fixture
def tracker(storage):
    return JobTracker(storage)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_create(self, tracker):
        """Should start in processing with zero progress."""
        job = await tracker.create(JobType.SUBMISSION_ANALYSIS, {"courseId": 3})

        assert job.type == "submission_analysis"
        assert job.status == "processing"
        assert job.progress == 0
        assert job.job_metadata == {"courseId": 3}

    @pytest.mark.asyncio
    async def test_complete_immediately(self, tracker):
        """Should be completed at exactly 100 progress."""
        job = await tracker.create(JobType.COURSE_SYNC)

        done = await tracker.complete(job.id)

        assert done.status == "completed"
        assert done.progress == 100

    @pytest.mark.asyncio
    async def test_update_records_caller_values(self, tracker):
        """Should store progress and counts as given."""
        job = await tracker.create(JobType.COURSE_SYNC)

        updated = await tracker.update(job.id, progress=40, processed_items=2, total_items=5)

        assert updated.progress == 40
        assert updated.processed_items == 2
        assert updated.total_items == 5
        assert updated.status == "processing"

    @pytest.mark.asyncio
    async def test_missing_job(self, tracker):
        with pytest.raises(NotFoundError):
            await tracker.update(999, progress=10)


class TestRun:
    @pytest.mark.asyncio
    async def test_success_completes(self, tracker):
        """Should complete the job when the operation returns."""
        job = await tracker.create(JobType.CANDIDATE_ANALYSIS)

        async def operation():
            await tracker.update(job.id, progress=50)

        result = await tracker.run(job.id, operation)

        assert result.status == "completed"
        assert result.progress == 100
        assert result.error is None

    @pytest.mark.asyncio
    async def test_exception_fails_with_message(self, tracker):
        """Should fail the job with the exception message."""
        job = await tracker.create(JobType.COURSE_SYNC)

        async def operation():
            raise RuntimeError("LMS API request failed: 500 Internal Server Error")

        result = await tracker.run(job.id, operation)

        assert result.status == "failed"
        assert result.error == "LMS API request failed: 500 Internal Server Error"

    @pytest.mark.asyncio
    async def test_empty_message_uses_class_name(self, tracker):
        """Should never record an empty error string."""
        job = await tracker.create(JobType.COURSE_SYNC)

        async def operation():
            raise KeyError()

        result = await tracker.run(job.id, operation)

        assert result.error == "KeyError"


class TestTerminalStates:
    @pytest.mark.asyncio
    async def test_completed_job_cannot_be_updated(self, tracker):
        job = await tracker.create(JobType.COURSE_SYNC)
        await tracker.complete(job.id)

        with pytest.raises(JobStateError):
            await tracker.update(job.id, progress=10)

    @pytest.mark.asyncio
    async def test_failed_job_is_never_resumed(self, tracker):
        """Should refuse to complete a failed job."""
        job = await tracker.create(JobType.COURSE_SYNC)
        await tracker.fail(job.id, "boom")

        with pytest.raises(JobStateError):
            await tracker.complete(job.id)
        stored = await tracker.get(job.id)
        assert stored.status == "failed"
        assert stored.error == "boom"
