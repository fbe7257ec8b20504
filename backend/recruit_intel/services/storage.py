"""
Storage Service - async repository over the local entity store

Wraps an async SQLAlchemy session factory and exposes the create/read/update
operations the reconciler, analysis pipeline and API routes need. Each
operation opens its own short-lived session, so returned ORM objects are
detached snapshots (sessions use expire_on_commit=False) and concurrent
tasks never share a session.

Mutation rules enforced here:
    - Assignments and submissions have no general update operation
      (immutable after creation).
    - A submission's analysis is recorded at most once (is_analyzed only
      ever goes False → True).
"""

import logging
from typing import Any, List, Optional, Type, TypeVar

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recruit_intel.database import Base, utcnow
from recruit_intel.models import (
    Assignment,
    Candidate,
    CANDIDATE_STATUSES,
    Course,
    ProcessingJob,
    Submission,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class NotFoundError(LookupError):
    """Raised when an entity looked up by local id does not exist."""


class Storage:
    """
    Repository for courses, candidates, assignments, submissions and jobs.

    Attributes:
        session_factory: async_sessionmaker bound to the application engine
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    # ==================== Generic helpers ====================

    async def _get(self, model: Type[ModelT], entity_id: int) -> Optional[ModelT]:
        async with self.session_factory() as session:
            return await session.get(model, entity_id)

    async def _get_by(self, model: Type[ModelT], column, value: Any) -> Optional[ModelT]:
        async with self.session_factory() as session:
            result = await session.execute(select(model).where(column == value))
            return result.scalar_one_or_none()

    async def _create(self, entity: ModelT) -> ModelT:
        async with self.session_factory() as session:
            session.add(entity)
            await session.commit()
            return entity

    async def _update(self, model: Type[ModelT], entity_id: int, fields: dict) -> ModelT:
        async with self.session_factory() as session:
            entity = await session.get(model, entity_id)
            if entity is None:
                raise NotFoundError(f"{model.__name__} with id {entity_id} not found")
            for field, value in fields.items():
                setattr(entity, field, value)
            await session.commit()
            return entity

    # ==================== Courses ====================

    async def list_courses(self) -> List[Course]:
        async with self.session_factory() as session:
            result = await session.execute(select(Course).order_by(Course.id))
            return list(result.scalars().all())

    async def get_course(self, course_id: int) -> Optional[Course]:
        return await self._get(Course, course_id)

    async def get_course_by_external_id(self, external_id: str) -> Optional[Course]:
        return await self._get_by(Course, Course.external_id, external_id)

    async def create_course(self, **fields) -> Course:
        return await self._create(Course(**fields))

    async def update_course(self, course_id: int, **fields) -> Course:
        return await self._update(Course, course_id, fields)

    # ==================== Candidates ====================

    async def list_candidates(self, course_id: Optional[int] = None) -> List[Candidate]:
        query = select(Candidate).order_by(Candidate.id)
        if course_id is not None:
            query = query.where(Candidate.course_id == course_id)
        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_candidate(self, candidate_id: int) -> Optional[Candidate]:
        return await self._get(Candidate, candidate_id)

    async def get_candidate_by_external_user_id(self, external_user_id: str) -> Optional[Candidate]:
        return await self._get_by(Candidate, Candidate.external_user_id, external_user_id)

    async def create_candidate(self, **fields) -> Candidate:
        _check_status(fields)
        return await self._create(Candidate(**fields))

    async def update_candidate(self, candidate_id: int, **fields) -> Candidate:
        _check_status(fields)
        return await self._update(Candidate, candidate_id, fields)

    # ==================== Assignments ====================

    async def list_assignments(self, course_id: Optional[int] = None) -> List[Assignment]:
        query = select(Assignment).order_by(Assignment.id)
        if course_id is not None:
            query = query.where(Assignment.course_id == course_id)
        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_assignment(self, assignment_id: int) -> Optional[Assignment]:
        return await self._get(Assignment, assignment_id)

    async def get_assignment_by_external_id(self, external_id: str) -> Optional[Assignment]:
        return await self._get_by(Assignment, Assignment.external_id, external_id)

    async def create_assignment(self, **fields) -> Assignment:
        return await self._create(Assignment(**fields))

    # ==================== Submissions ====================

    async def list_submissions(
        self,
        assignment_id: Optional[int] = None,
        candidate_id: Optional[int] = None,
        course_id: Optional[int] = None,
        analyzed: Optional[bool] = None,
    ) -> List[Submission]:
        query = select(Submission).order_by(Submission.id)
        if assignment_id is not None:
            query = query.where(Submission.assignment_id == assignment_id)
        if candidate_id is not None:
            query = query.where(Submission.candidate_id == candidate_id)
        if course_id is not None:
            query = query.join(Assignment, Submission.assignment_id == Assignment.id).where(
                Assignment.course_id == course_id
            )
        if analyzed is not None:
            query = query.where(Submission.is_analyzed.is_(analyzed))
        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_submission(self, submission_id: int) -> Optional[Submission]:
        return await self._get(Submission, submission_id)

    async def get_submission_by_external_id(self, external_id: str) -> Optional[Submission]:
        return await self._get_by(Submission, Submission.external_id, external_id)

    async def create_submission(self, **fields) -> Submission:
        if fields.get("assignment_id") is None or fields.get("candidate_id") is None:
            raise ValueError("Submission requires both assignment_id and candidate_id")
        return await self._create(Submission(**fields))

    async def record_analysis(self, submission_id: int, analysis: dict) -> bool:
        """
        Store the AI analysis for a submission and mark it analyzed.

        Returns:
            False if the submission was already analyzed (nothing written)
        """
        async with self.session_factory() as session:
            result = await session.execute(
                update(Submission)
                .where(Submission.id == submission_id, Submission.is_analyzed.is_(False))
                .values(ai_analysis=analysis, is_analyzed=True)
            )
            await session.commit()
            return result.rowcount == 1

    # ==================== Processing jobs ====================

    async def create_processing_job(self, **fields) -> ProcessingJob:
        return await self._create(ProcessingJob(**fields))

    async def get_processing_job(self, job_id: int) -> Optional[ProcessingJob]:
        return await self._get(ProcessingJob, job_id)

    async def list_processing_jobs(self, limit: int = 10) -> List[ProcessingJob]:
        """Return the most recent jobs, oldest first."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(ProcessingJob).order_by(ProcessingJob.id.desc()).limit(limit)
            )
            return list(reversed(result.scalars().all()))

    async def update_processing_job(self, job_id: int, **fields) -> ProcessingJob:
        fields.setdefault("updated_at", utcnow())
        return await self._update(ProcessingJob, job_id, fields)


def _check_status(fields: dict) -> None:
    status = fields.get("status")
    if status is not None and status not in CANDIDATE_STATUSES:
        raise ValueError(f"Invalid candidate status: {status!r}")
