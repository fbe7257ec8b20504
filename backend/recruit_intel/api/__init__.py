from fastapi import APIRouter
from recruit_intel.api import candidates, courses, jobs, status, sync

api_router = APIRouter(prefix="/api")
api_router.include_router(status.router, tags=["status"])
api_router.include_router(sync.router, prefix="/sync", tags=["sync"])
api_router.include_router(courses.router, prefix="/courses", tags=["courses"])
api_router.include_router(candidates.router, prefix="/candidates", tags=["candidates"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
