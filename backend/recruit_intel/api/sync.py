from fastapi import APIRouter, Depends, HTTPException

from recruit_intel.dependencies import Services, get_services
from recruit_intel.schemas import JobStartedResponse
from recruit_intel.services.lms import LMSConfigurationError

router = APIRouter()


@router.post("/courses", response_model=JobStartedResponse)
async def sync_courses(services: Services = Depends(get_services)):
    try:
        job = await services.pipeline.start_course_sync()
    except LMSConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return JobStartedResponse(job_id=job.id, message="Course sync started")


@router.post("/courses/{external_id}", response_model=JobStartedResponse)
async def sync_course(external_id: str, services: Services = Depends(get_services)):
    try:
        job = await services.pipeline.start_course_sync(external_id)
    except LMSConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return JobStartedResponse(job_id=job.id, message=f"Sync of course {external_id} started")
