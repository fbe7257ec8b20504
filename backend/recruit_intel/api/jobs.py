from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from recruit_intel.dependencies import Services, get_services
from recruit_intel.schemas import ProcessingJobResponse

router = APIRouter()


@router.get("", response_model=List[ProcessingJobResponse])
async def list_jobs(
    limit: int = Query(10, ge=1, le=100),
    services: Services = Depends(get_services),
):
    jobs = await services.storage.list_processing_jobs(limit=limit)
    return [ProcessingJobResponse.model_validate(job) for job in jobs]


@router.get("/{job_id}", response_model=ProcessingJobResponse)
async def get_job(job_id: int, services: Services = Depends(get_services)):
    job = await services.storage.get_processing_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return ProcessingJobResponse.model_validate(job)
