"""
Record Reconciler - upsert LMS records into local storage

A course sync runs strictly in order:
    1. Upsert the Course (create, or refresh name/code/enrollment/active)
    2. Fetch assignments and record the count on the course
    3. Upsert the roster: candidates keyed by external user ID; existing
       candidates only get name/email/course refreshed
    4. Per assignment: create it if unknown (never updated afterwards),
       then fetch its submissions and link each one to a candidate via the
       identity matcher. Unmatched submissions are skipped with a warning,
       never turned into new candidates. Known submission IDs are no-ops.

Failure policy:
    - A failed submission fetch for one assignment is logged and the loop
      moves on to the next assignment.
    - Any other error aborts the course (and, under sync_all, the job).

Per-assignment match statistics are logged and exported as Prometheus
counters; they never drive control flow.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from recruit_intel.middleware.metrics import record_submission_match
from recruit_intel.models import Assignment, Candidate, CandidateStatus, Course
from recruit_intel.schemas.lms import LMSAssignment, LMSCourse, LMSSubmission, LMSUser
from recruit_intel.services.identity import MatchStrategy, match_candidate
from recruit_intel.services.lms import LMSClient, LMSError
from recruit_intel.services.storage import Storage

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Awaitable[None]]


@dataclass
class AssignmentSyncStats:
    assignment_id: str
    name: str
    matched: int = 0
    unmatched: int = 0
    created: int = 0
    existing: int = 0
    fetch_failed: bool = False


@dataclass
class CourseSyncResult:
    course: Course
    candidates_created: int = 0
    candidates_updated: int = 0
    assignments_created: int = 0
    assignments: List[AssignmentSyncStats] = field(default_factory=list)

    @property
    def submissions_created(self) -> int:
        return sum(stats.created for stats in self.assignments)

    @property
    def unmatched(self) -> int:
        return sum(stats.unmatched for stats in self.assignments)


class Reconciler:
    """
    Merge one LMS's courses, rosters, assignments and submissions into storage.

    Attributes:
        storage: Entity store
        lms: LMS client the records are fetched from
    """

    def __init__(self, storage: Storage, lms: LMSClient):
        self.storage = storage
        self.lms = lms

    async def sync_all(self, on_progress: Optional[ProgressCallback] = None) -> List[CourseSyncResult]:
        """
        Sync every course visible to the LMS token, in order.

        Args:
            on_progress: Awaited with (processed, total) once the course list
                is known (processed=0) and after each course finishes
        """
        courses = await self.lms.get_courses()
        logger.info(f"Syncing {len(courses)} courses from {self.lms.source}")
        if on_progress is not None:
            await on_progress(0, len(courses))

        results = []
        for processed, lms_course in enumerate(courses, start=1):
            results.append(await self.reconcile_course(lms_course))
            if on_progress is not None:
                await on_progress(processed, len(courses))
        return results

    async def sync_course(self, external_id: str) -> CourseSyncResult:
        lms_course = await self.lms.get_course(external_id)
        return await self.reconcile_course(lms_course)

    async def reconcile_course(self, lms_course: LMSCourse) -> CourseSyncResult:
        course = await self._upsert_course(lms_course)
        result = CourseSyncResult(course=course)

        lms_assignments = await self.lms.get_course_assignments(lms_course.id)
        course = await self.storage.update_course(course.id, assignment_count=len(lms_assignments))
        result.course = course

        students = await self.lms.get_course_students(lms_course.id)
        logger.info(f"Found {len(students)} students in course {lms_course.name}")
        for student in students:
            created = await self._upsert_candidate(student, course.id)
            if created:
                result.candidates_created += 1
            else:
                result.candidates_updated += 1

        candidates = await self.storage.list_candidates(course_id=course.id)

        for lms_assignment in lms_assignments:
            assignment = await self.storage.get_assignment_by_external_id(lms_assignment.id)
            if assignment is None:
                assignment = await self._create_assignment(lms_assignment, course.id)
                result.assignments_created += 1

            stats = AssignmentSyncStats(assignment_id=lms_assignment.id, name=lms_assignment.name)
            try:
                submissions = await self.lms.get_assignment_submissions(lms_course.id, lms_assignment.id)
            except LMSError as e:
                logger.error(f"Error fetching submissions for assignment {lms_assignment.name}: {e}")
                stats.fetch_failed = True
                result.assignments.append(stats)
                continue

            logger.info(f"Found {len(submissions)} submissions for assignment {lms_assignment.name}")
            for lms_submission in submissions:
                await self._reconcile_submission(lms_submission, assignment, candidates, stats)

            logger.info(
                f"Assignment {lms_assignment.name}: {stats.matched} matched, "
                f"{stats.unmatched} unmatched, {stats.created} created, {stats.existing} already present"
            )
            result.assignments.append(stats)

        logger.info(
            f"Synced course {course.name}: {result.candidates_created} candidates created, "
            f"{result.assignments_created} assignments created, "
            f"{result.submissions_created} submissions created"
        )
        return result

    async def _upsert_course(self, lms_course: LMSCourse) -> Course:
        fields = dict(
            name=lms_course.name,
            code=lms_course.course_code,
            enrollment_count=lms_course.total_students,
            is_active=lms_course.is_active,
        )
        course = await self.storage.get_course_by_external_id(lms_course.id)
        if course is None:
            course = await self.storage.create_course(external_id=lms_course.id, **fields)
            logger.info(f"Created course {course.name} ({lms_course.id})")
            return course
        return await self.storage.update_course(course.id, **fields)

    async def _upsert_candidate(self, student: LMSUser, course_id: int) -> bool:
        candidate = await self.storage.get_candidate_by_external_user_id(student.id)
        if candidate is None:
            await self.storage.create_candidate(
                external_user_id=student.id,
                name=student.name,
                email=student.email,
                course_id=course_id,
                status=CandidateStatus.IN_PROGRESS.value,
            )
            logger.info(f"Created candidate: {student.name} ({student.email})")
            return True

        await self.storage.update_candidate(
            candidate.id,
            name=student.name,
            email=student.email,
            course_id=course_id,
        )
        logger.debug(f"Updated candidate: {student.name} ({student.email})")
        return False

    async def _create_assignment(self, lms_assignment: LMSAssignment, course_id: int) -> Assignment:
        rubric = lms_assignment.rubric
        return await self.storage.create_assignment(
            external_id=lms_assignment.id,
            course_id=course_id,
            name=lms_assignment.name,
            description=lms_assignment.description,
            points_possible=lms_assignment.points_possible,
            due_at=lms_assignment.due_at,
            submission_types=lms_assignment.submission_types,
            has_rubric=bool(rubric),
            rubric_data=[criterion.model_dump() for criterion in rubric] if rubric else None,
        )

    async def _reconcile_submission(
        self,
        lms_submission: LMSSubmission,
        assignment: Assignment,
        candidates: List[Candidate],
        stats: AssignmentSyncStats,
    ) -> None:
        if not lms_submission.user_ref:
            return

        match = match_candidate(
            candidates,
            user_id=lms_submission.user_ref,
            name=lms_submission.user_name,
            email=lms_submission.user_email or None,
        )
        if match is None:
            stats.unmatched += 1
            record_submission_match("unmatched")
            logger.warning(
                f"No candidate found for submission user {lms_submission.user_name} "
                f"({lms_submission.user_ref})"
            )
            return

        stats.matched += 1
        record_submission_match(match.strategy.value)
        if match.strategy is not MatchStrategy.ID:
            logger.info(
                f"Matched submission user {lms_submission.user_name} ({lms_submission.user_ref}) "
                f"to candidate {match.candidate.id} by {match.strategy.value}"
            )

        if await self.storage.get_submission_by_external_id(lms_submission.id) is not None:
            stats.existing += 1
            return

        await self.storage.create_submission(
            external_id=lms_submission.id,
            assignment_id=assignment.id,
            candidate_id=match.candidate.id,
            score=lms_submission.score,
            grade=lms_submission.grade,
            submission_type=lms_submission.submission_type,
            content=lms_submission.body or lms_submission.url or "",
            attachments=[attachment.to_record() for attachment in lms_submission.attachments],
            submitted_at=lms_submission.submitted_at,
            rubric_assessment=(
                lms_submission.rubric_assessment.model_dump()
                if lms_submission.rubric_assessment else None
            ),
        )
        stats.created += 1
