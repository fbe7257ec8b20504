from typing import Dict, Iterable

from fastapi import APIRouter, Depends, HTTPException

from recruit_intel.dependencies import Services, get_services
from recruit_intel.models import Assignment, Candidate, Submission
from recruit_intel.schemas import (
    AssignmentResponse,
    CandidateDetailResponse,
    SubmissionResponse,
)

router = APIRouter()


def submission_response(submission: Submission, assignments: Dict[int, Assignment]) -> SubmissionResponse:
    response = SubmissionResponse.model_validate(submission)
    assignment = assignments.get(submission.assignment_id)
    if assignment is not None:
        response.assignment = AssignmentResponse.model_validate(assignment)
    return response


def candidate_detail(
    candidate: Candidate,
    submissions: Iterable[Submission],
    assignments: Dict[int, Assignment],
) -> CandidateDetailResponse:
    response = CandidateDetailResponse.model_validate(candidate)
    response.submissions = [submission_response(s, assignments) for s in submissions]
    return response


@router.get("/{candidate_id}", response_model=CandidateDetailResponse)
async def get_candidate(candidate_id: int, services: Services = Depends(get_services)):
    storage = services.storage
    candidate = await storage.get_candidate(candidate_id)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate not found")

    submissions = await storage.list_submissions(candidate_id=candidate.id)
    assignments: Dict[int, Assignment] = {}
    for assignment_id in {s.assignment_id for s in submissions}:
        assignment = await storage.get_assignment(assignment_id)
        if assignment is not None:
            assignments[assignment_id] = assignment

    return candidate_detail(candidate, submissions, assignments)
