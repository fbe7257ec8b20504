"""
Tests for the periodic course sync scheduler
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from recruit_intel.config import Settings
from recruit_intel.dependencies import build_services
from recruit_intel.scheduler import scheduled_course_sync, start_scheduler, stop_scheduler


class TestStartScheduler:
    def test_disabled_by_default(self):
        """Should not start a scheduler for a zero interval."""
        assert start_scheduler(MagicMock(), 0) is None

    @pytest.mark.asyncio
    async def test_registers_interval_job(self):
        scheduler = start_scheduler(MagicMock(), 6)
        try:
            job = scheduler.get_job("sync_courses")
            assert job is not None
            assert job.trigger.interval.total_seconds() == 6 * 3600
        finally:
            stop_scheduler(scheduler)


class TestScheduledCourseSync:
    @pytest.mark.asyncio
    async def test_skips_without_lms_key(self):
        pipeline = MagicMock()
        pipeline.reconciler.lms.is_configured = False
        pipeline.tracker.create = AsyncMock()

        await scheduled_course_sync(pipeline)

        pipeline.tracker.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_runs_tracked_sync(self, session_factory, fake_lms):
        """Should record a completed course_sync job marked as scheduled."""
        fake_lms.courses = [{"id": 101, "name": "Data Bootcamp"}]
        services = build_services(Settings(openai_api_key=""), session_factory, lms=fake_lms)

        await scheduled_course_sync(services.pipeline)

        jobs = await services.storage.list_processing_jobs()
        assert len(jobs) == 1
        assert jobs[0].status == "completed"
        assert jobs[0].job_metadata == {"scheduled": True}
        assert len(await services.storage.list_courses()) == 1
