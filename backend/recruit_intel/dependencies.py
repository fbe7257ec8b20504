"""
Service container built once per process in the application lifespan.

Routes reach the services through the get_services dependency instead of
module-level singletons, so tests can build their own container.
"""

from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recruit_intel.config import Settings
from recruit_intel.pipeline import Pipeline
from recruit_intel.services.ai_analysis import AIAnalysisService
from recruit_intel.services.batch_queue import BatchQueue
from recruit_intel.services.insights import InsightAggregator
from recruit_intel.services.job_tracker import JobTracker
from recruit_intel.services.lms import CanvasClient, LMSClient
from recruit_intel.services.rate_limiter import RateLimiter
from recruit_intel.services.reconciler import Reconciler
from recruit_intel.services.storage import Storage
from recruit_intel.services.submission_analyzer import SubmissionAnalyzer


@dataclass
class Services:
    storage: Storage
    lms: LMSClient
    ai: AIAnalysisService
    queue: BatchQueue
    tracker: JobTracker
    pipeline: Pipeline


def build_services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    lms: Optional[LMSClient] = None,
    ai_client: Any = None,
) -> Services:
    storage = Storage(session_factory)
    lms = lms or CanvasClient(
        base_url=settings.canvas_base_url,
        api_key=settings.canvas_api_key,
        student_page_limit=settings.student_page_limit,
        submission_page_limit=settings.submission_page_limit,
    )
    ai = AIAnalysisService(
        api_key=settings.openai_api_key,
        model=settings.ai_model,
        max_tokens=settings.ai_max_tokens,
        temperature=settings.ai_temperature,
        rate_limiter=RateLimiter(settings.ai_min_call_interval),
        max_content_chars=settings.max_content_chars,
        client=ai_client,
    )
    queue = BatchQueue(batch_size=settings.batch_size, batch_delay=settings.batch_delay_seconds)
    tracker = JobTracker(storage)
    pipeline = Pipeline(
        storage=storage,
        tracker=tracker,
        reconciler=Reconciler(storage, lms),
        analyzer=SubmissionAnalyzer(storage, ai, lms, queue),
        aggregator=InsightAggregator(storage, ai),
        ai=ai,
    )
    return Services(storage=storage, lms=lms, ai=ai, queue=queue, tracker=tracker, pipeline=pipeline)


def get_services(request: Request) -> Services:
    return request.app.state.services
