"""
Insight Aggregator - fold analyzed submissions into candidate-level fields

For each candidate with at least one analyzed submission:
    overall_score    = mean confidence of the analyzed submissions
    completion_rate  = submissions / course assignments (may exceed 1.0,
                       0.0 when the course has no assignments)
    submission_count = raw submission count
and the AI gateway's candidate insights supply status, strengths,
weaknesses, interview focus and the narrative assessment.

Candidates with no analyzed submissions are skipped and keep whatever
values they had.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from recruit_intel.models import Assignment, Candidate, Submission
from recruit_intel.schemas.analysis import SubmissionAnalysis, SubmissionHistoryItem
from recruit_intel.services.ai_analysis import AIAnalysisService
from recruit_intel.services.storage import Storage

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Awaitable[None]]


def mean_confidence(analyses: Sequence[SubmissionAnalysis]) -> float:
    return sum(a.confidence for a in analyses) / len(analyses)


def completion_rate(submission_count: int, assignment_count: int) -> float:
    if assignment_count <= 0:
        return 0.0
    return submission_count / assignment_count


def build_history(
    submissions: Sequence[Submission],
    assignments: Dict[int, Assignment],
) -> List[SubmissionHistoryItem]:
    history = []
    for submission in submissions:
        if not submission.ai_analysis:
            continue
        try:
            analysis = SubmissionAnalysis.model_validate(submission.ai_analysis)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed stored analysis on submission {submission.id}: {e}")
            continue
        assignment = assignments.get(submission.assignment_id)
        history.append(SubmissionHistoryItem(
            analysis=analysis,
            assignment_name=assignment.name if assignment else "Unknown",
            score=submission.score or 0.0,
        ))
    return history


class InsightAggregator:
    def __init__(self, storage: Storage, ai: AIAnalysisService):
        self.storage = storage
        self.ai = ai

    async def aggregate_candidate(
        self,
        candidate: Candidate,
        assignments: Sequence[Assignment],
    ) -> bool:
        """
        Recompute one candidate's aggregate and insight fields.

        Returns:
            True if the candidate was updated, False if skipped
        """
        submissions = await self.storage.list_submissions(candidate_id=candidate.id)
        history = build_history(submissions, {a.id: a for a in assignments})
        if not history:
            logger.debug(f"Candidate {candidate.id} has no analyzed submissions, skipping")
            return False

        insights = await self.ai.generate_candidate_insights(history)

        await self.storage.update_candidate(
            candidate.id,
            overall_score=mean_confidence([item.analysis for item in history]),
            submission_count=len(submissions),
            completion_rate=completion_rate(len(submissions), len(assignments)),
            status=insights.readiness_level,
            strengths=insights.top_strengths,
            weaknesses=insights.areas_for_improvement,
            interview_focus=insights.interview_focus,
            ai_insights=insights.overall_assessment,
        )
        logger.info(f"Updated insights for candidate {candidate.id}: {insights.readiness_level}")
        return True

    async def aggregate_course(
        self,
        course_id: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        """
        Aggregate every candidate of a course.

        A failure for one candidate is logged and only skips that candidate.

        Returns:
            Number of candidates updated
        """
        candidates = await self.storage.list_candidates(course_id=course_id)
        assignments = await self.storage.list_assignments(course_id=course_id)

        updated = 0
        for index, candidate in enumerate(candidates, start=1):
            try:
                if await self.aggregate_candidate(candidate, assignments):
                    updated += 1
            except Exception as e:
                logger.error(f"Error generating insights for candidate {candidate.id}: {e}")
            if on_progress is not None:
                await on_progress(index, len(candidates))

        logger.info(f"Aggregated insights for {updated}/{len(candidates)} candidates in course {course_id}")
        return updated
