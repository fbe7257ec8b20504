"""
Background Pipeline - job-tracked sync, analysis and insight operations

Each public start_* coroutine creates a ProcessingJob, schedules the work
as a background asyncio task and returns the job immediately; callers poll
the job record for progress.

Progress bands:
    course_sync          10 once the course list is known, then
                         processed/total*100 after each course
    submission_analysis  20 → 80 while submissions are analyzed,
                         80 → 99 while candidate insights are aggregated
    candidate_analysis   processed/total*100 per candidate
Every job ends at 100 on success.

Two analysis jobs for the same course must not run at the same time; this
is not enforced here.
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional, Set

from recruit_intel.models import JobType, ProcessingJob
from recruit_intel.services.ai_analysis import AIAnalysisService
from recruit_intel.services.insights import InsightAggregator
from recruit_intel.services.job_tracker import JobTracker
from recruit_intel.services.reconciler import Reconciler
from recruit_intel.services.storage import NotFoundError, Storage
from recruit_intel.services.submission_analyzer import (
    PROGRESS_SPAN,
    PROGRESS_START,
    SubmissionAnalyzer,
    analysis_progress,
)

logger = logging.getLogger(__name__)

SYNC_LIST_PROGRESS = 10
INSIGHTS_START = PROGRESS_START + PROGRESS_SPAN
INSIGHTS_SPAN = 19


class Pipeline:
    def __init__(
        self,
        storage: Storage,
        tracker: JobTracker,
        reconciler: Reconciler,
        analyzer: SubmissionAnalyzer,
        aggregator: InsightAggregator,
        ai: AIAnalysisService,
    ):
        self.storage = storage
        self.tracker = tracker
        self.reconciler = reconciler
        self.analyzer = analyzer
        self.aggregator = aggregator
        self.ai = ai
        self._tasks: Set[asyncio.Task] = set()

    def start_background(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Run a coroutine as a task, holding a reference until it finishes."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every background task started so far."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _require_course(self, course_id: int) -> None:
        if await self.storage.get_course(course_id) is None:
            raise NotFoundError(f"Course with id {course_id} not found")

    # ==================== Course sync ====================

    async def start_course_sync(self, external_id: Optional[str] = None) -> ProcessingJob:
        self.reconciler.lms.ensure_configured()
        metadata = {"externalId": external_id} if external_id else None
        job = await self.tracker.create(JobType.COURSE_SYNC, metadata)
        self.start_background(self.run_course_sync(job.id, external_id))
        return job

    async def run_course_sync(self, job_id: int, external_id: Optional[str] = None) -> ProcessingJob:
        async def on_progress(processed: int, total: int) -> None:
            if processed == 0:
                await self.tracker.update(job_id, total_items=total, progress=SYNC_LIST_PROGRESS)
                return
            await self.tracker.update(
                job_id,
                processed_items=processed,
                progress=max(SYNC_LIST_PROGRESS, processed / total * 100),
            )

        async def operation() -> None:
            if external_id is None:
                await self.reconciler.sync_all(on_progress)
                return
            await on_progress(0, 1)
            await self.reconciler.sync_course(external_id)
            await on_progress(1, 1)

        return await self.tracker.run(job_id, operation)

    # ==================== Submission analysis ====================

    async def start_submission_analysis(self, course_id: int) -> ProcessingJob:
        await self._require_course(course_id)
        self.ai.ensure_configured()
        job = await self.tracker.create(JobType.SUBMISSION_ANALYSIS, {"courseId": course_id})
        self.start_background(self.run_submission_analysis(job.id, course_id))
        return job

    async def run_submission_analysis(self, job_id: int, course_id: int) -> ProcessingJob:
        async def on_analysis_progress(done: int, total: int) -> None:
            await self.tracker.update(
                job_id,
                processed_items=done,
                total_items=total,
                progress=analysis_progress(done, total),
            )

        async def on_insight_progress(done: int, total: int) -> None:
            await self.tracker.update(
                job_id,
                progress=INSIGHTS_START + round(done / total * INSIGHTS_SPAN),
            )

        async def operation() -> None:
            await self._require_course(course_id)
            await self.tracker.update(job_id, progress=PROGRESS_START)
            await self.analyzer.analyze_pending(course_id, on_progress=on_analysis_progress)
            await self.tracker.update(job_id, progress=INSIGHTS_START)
            await self.aggregator.aggregate_course(course_id, on_progress=on_insight_progress)

        return await self.tracker.run(job_id, operation)

    # ==================== Candidate insights ====================

    async def start_candidate_analysis(self, course_id: int) -> ProcessingJob:
        await self._require_course(course_id)
        self.ai.ensure_configured()
        job = await self.tracker.create(JobType.CANDIDATE_ANALYSIS, {"courseId": course_id})
        self.start_background(self.run_candidate_analysis(job.id, course_id))
        return job

    async def run_candidate_analysis(self, job_id: int, course_id: int) -> ProcessingJob:
        async def on_progress(done: int, total: int) -> None:
            await self.tracker.update(
                job_id,
                processed_items=done,
                total_items=total,
                progress=done / total * 100,
            )

        async def operation() -> None:
            await self._require_course(course_id)
            await self.aggregator.aggregate_course(course_id, on_progress=on_progress)

        return await self.tracker.run(job_id, operation)
