from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from recruit_intel.dependencies import Services, get_services
from recruit_intel.schemas import StatusResponse
from recruit_intel.services.lms import LMSError

router = APIRouter()


@router.get("/status", response_model=StatusResponse)
async def get_status(services: Services = Depends(get_services)):
    ai_configured = services.ai.is_configured
    try:
        await services.lms.get_courses()
    except LMSError as e:
        body = StatusResponse(status="error", lms=False, ai=ai_configured, message=str(e))
        return JSONResponse(status_code=500, content=body.model_dump())
    return StatusResponse(status="connected", lms=True, ai=ai_configured)
