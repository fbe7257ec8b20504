from collections import defaultdict
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException

from recruit_intel.api.candidates import candidate_detail
from recruit_intel.dependencies import Services, get_services
from recruit_intel.models import Submission
from recruit_intel.schemas import (
    AssignmentResponse,
    CandidateDetailResponse,
    CourseResponse,
    JobStartedResponse,
)
from recruit_intel.services.ai_analysis import AIConfigurationError
from recruit_intel.services.storage import NotFoundError

router = APIRouter()


async def _require_course(services: Services, course_id: int) -> None:
    if not await services.storage.get_course(course_id):
        raise HTTPException(status_code=404, detail="Course not found")


@router.get("", response_model=List[CourseResponse])
async def list_courses(services: Services = Depends(get_services)):
    courses = await services.storage.list_courses()
    return [CourseResponse.model_validate(course) for course in courses]


@router.get("/{course_id}/candidates", response_model=List[CandidateDetailResponse])
async def list_course_candidates(course_id: int, services: Services = Depends(get_services)):
    await _require_course(services, course_id)
    storage = services.storage

    candidates = await storage.list_candidates(course_id=course_id)
    assignments = {a.id: a for a in await storage.list_assignments(course_id=course_id)}
    by_candidate: Dict[int, List[Submission]] = defaultdict(list)
    for submission in await storage.list_submissions(course_id=course_id):
        by_candidate[submission.candidate_id].append(submission)

    return [
        candidate_detail(candidate, by_candidate.get(candidate.id, []), assignments)
        for candidate in candidates
    ]


@router.get("/{course_id}/assignments", response_model=List[AssignmentResponse])
async def list_course_assignments(course_id: int, services: Services = Depends(get_services)):
    await _require_course(services, course_id)
    assignments = await services.storage.list_assignments(course_id=course_id)
    return [AssignmentResponse.model_validate(a) for a in assignments]


@router.post("/{course_id}/analyze", response_model=JobStartedResponse)
async def analyze_course(course_id: int, services: Services = Depends(get_services)):
    try:
        job = await services.pipeline.start_submission_analysis(course_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Course not found")
    except AIConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return JobStartedResponse(job_id=job.id, message="Analysis started")


@router.post("/{course_id}/insights", response_model=JobStartedResponse)
async def generate_course_insights(course_id: int, services: Services = Depends(get_services)):
    try:
        job = await services.pipeline.start_candidate_analysis(course_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Course not found")
    except AIConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return JobStartedResponse(job_id=job.id, message="Candidate insight generation started")
