from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class ProcessingJobResponse(BaseModel):
    id: int
    type: str
    status: str
    progress: float
    total_items: int
    processed_items: int
    metadata: Optional[dict] = Field(default=None, validation_alias="job_metadata")
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JobStartedResponse(BaseModel):
    job_id: int
    message: str


class StatusResponse(BaseModel):
    status: str
    lms: bool
    ai: bool
    message: Optional[str] = None
